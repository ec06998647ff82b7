"""
USDT Trader Pro - Streamlit Application
Stablecoin ledger with per-portfolio cost basis, realized PnL, a sale
simulator and an AI summary.
"""

import streamlit as st
import pandas as pd
import logging
from datetime import date
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from llm_engine import LLMClient
from repositories import UserPreferencesRepository
from services import (
    PORTFOLIOS,
    AdvisorService,
    InsufficientBalanceError,
    LedgerService,
    TransactionType,
    TransactionValidationError,
    dump_json,
    get_portfolio_config,
    load_json,
    preview_transaction,
)
from services.common import format_fiat, format_pct, format_units, transaction_label

# Load environment variables
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="USDT Trader Pro",
    page_icon="💵",
    layout="wide"
)

# Initialize database
init_db()


# ==================== SESSION STATE ====================
if "ledger" not in st.session_state:
    st.session_state.ledger = LedgerService()

if "active_portfolio" not in st.session_state:
    st.session_state.active_portfolio = UserPreferencesRepository.get_active_portfolio(settings.default_portfolio)

if "language" not in st.session_state:
    st.session_state.language = UserPreferencesRepository.get_language()

if "llm_client" not in st.session_state:
    st.session_state.llm_client = None

if "analysis" not in st.session_state:
    st.session_state.analysis = {}


# ==================== HELPER FUNCTIONS ====================
def fiat(value: float) -> str:
    return format_fiat(value, settings.fiat_currency)


def units(value: float) -> str:
    return format_units(value, settings.asset_symbol)


def get_advisor() -> AdvisorService:
    """Advisor bound to the sidebar client, or built from settings on demand."""
    return AdvisorService(client=st.session_state.llm_client, language=st.session_state.language)


def transactions_dataframe(transactions) -> pd.DataFrame:
    """History table rows for st.dataframe."""
    rows = []
    for tx in transactions:
        rows.append({
            "Date": tx.date.isoformat(),
            "Type": tx.type.value,
            f"Amount ({settings.fiat_currency})": fiat(tx.amount_fiat),
            "Price": fiat(tx.price_per_unit),
            settings.asset_symbol: units(tx.amount_asset),
            "Realized PnL": fiat(tx.realized_pnl) if tx.realized_pnl is not None else "-",
            "PnL %": format_pct(tx.pnl_percentage) if tx.pnl_percentage is not None else "-",
        })
    return pd.DataFrame(rows)


# ==================== SIDEBAR ====================
def render_sidebar():
    """Render the sidebar with AI settings and data import/export."""
    st.sidebar.title("⚙️ Settings")

    # --- LLM Settings ---
    st.sidebar.subheader("🤖 AI Assistant")

    llm_mode = st.sidebar.radio(
        "LLM Mode",
        ["Cloud (OpenAI-Compatible)", "Local (Ollama)"],
        index=0 if settings.llm_mode == "cloud" else 1,
        help="Choose between cloud OpenAI-compatible API or local Ollama server"
    )
    mode_value = "cloud" if llm_mode == "Cloud (OpenAI-Compatible)" else "local"

    if mode_value == "cloud":
        model_name = st.sidebar.text_input("Model Name", value=settings.openai_model or "gpt-4o-mini")
        api_key = st.sidebar.text_input("API Key", type="password", value=settings.openai_api_key or "")
        base_url = st.sidebar.text_input(
            "Base URL (Optional)",
            value=settings.openai_base_url or "",
            placeholder="Leave empty for official OpenAI"
        )
        base_url = base_url if base_url else None
    else:
        model_name = st.sidebar.text_input("Model Name", value=settings.local_model)
        base_url = st.sidebar.text_input("Base URL", value=settings.local_llm_url)
        api_key = "ollama"

    language = st.sidebar.selectbox(
        "Analysis Language",
        ["en", "es"],
        index=0 if st.session_state.language == "en" else 1,
        format_func=lambda code: {"en": "English", "es": "Español"}[code]
    )
    if language != st.session_state.language:
        st.session_state.language = language
        UserPreferencesRepository.save_language(language)
        if st.session_state.llm_client is not None:
            st.session_state.llm_client.set_language(language)

    if st.sidebar.button("Update AI Settings", use_container_width=True):
        try:
            st.session_state.llm_client = LLMClient(
                mode=mode_value,
                model_name=model_name,
                base_url=base_url,
                api_key=api_key,
                temperature=settings.llm_temperature,
                language=st.session_state.language
            )
            st.sidebar.success("✅ AI settings updated!")
        except ValueError as e:
            st.sidebar.error(f"❌ Error: {e}")

    # --- Data ---
    st.sidebar.subheader("💾 Data")
    ledger: LedgerService = st.session_state.ledger

    st.sidebar.download_button(
        label="📥 Export JSON",
        data=dump_json(ledger.log),
        file_name=f"usdt_transactions_{date.today().isoformat()}.json",
        mime="application/json",
        use_container_width=True
    )

    uploaded = st.sidebar.file_uploader("Import JSON", type=["json"])
    if uploaded is not None and st.sidebar.button("Replace ledger with file", use_container_width=True):
        imported = load_json(uploaded.getvalue().decode("utf-8", errors="replace"))
        if imported:
            ledger.replace_all(imported)
            st.sidebar.success(f"✅ Imported {len(imported)} transactions")
            st.rerun()
        else:
            st.sidebar.warning("⚠️ No valid transactions found in file")


# ==================== MAIN CONTENT ====================
def render_portfolio_selector() -> str:
    """Portfolio tabs; the choice is remembered across sessions."""
    ids = [p.id for p in PORTFOLIOS]
    current = st.session_state.active_portfolio
    selected = st.radio(
        "Portfolio",
        ids,
        index=ids.index(current) if current in ids else 0,
        format_func=lambda pid: f"{get_portfolio_config(pid).icon} {get_portfolio_config(pid).label}",
        horizontal=True,
        label_visibility="collapsed"
    )
    if selected != current:
        st.session_state.active_portfolio = selected
        UserPreferencesRepository.save_active_portfolio(selected)
    return selected


def render_stats(stats):
    """Render the four stat cards."""
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Current Balance", units(stats.current_balance))
        st.caption(f"Average price: {fiat(stats.average_buy_price)} / {settings.asset_symbol}")

    with col2:
        st.metric("Active Investment", fiat(stats.active_investment))
        st.caption(f"Capital currently held in {settings.asset_symbol}")

    with col3:
        trend = "📈" if stats.total_realized_pnl >= 0 else "📉"
        st.metric("Realized PnL", f"{trend} {fiat(stats.total_realized_pnl)}")

    with col4:
        st.metric("Average Buy Price", fiat(stats.average_buy_price))


def render_transaction_form(ledger: LedgerService, portfolio_id: str, stats):
    """Render the new operation form with a live preview."""
    config = get_portfolio_config(portfolio_id)
    st.subheader("➕ New Operation")
    st.caption(f"Recording in: **{config.icon} {config.label}**")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        tx_type = st.radio("Type", [TransactionType.BUY.value, TransactionType.SELL.value], horizontal=True)
    with col2:
        tx_date = st.date_input("Date", value=date.today())
    with col3:
        amount_label = "Amount invested" if tx_type == TransactionType.BUY.value else "Amount received"
        amount_fiat = st.number_input(f"{amount_label} ({settings.fiat_currency})", min_value=0.0, step=1000.0)
    with col4:
        price = st.number_input(f"Price per {settings.asset_symbol}", min_value=0.0, step=1.0)

    preview = preview_transaction(tx_type, amount_fiat, price, stats.average_buy_price)
    verb = "You will receive" if tx_type == TransactionType.BUY.value else "You will sell"
    st.info(f"{verb}: **{units(preview.amount_asset)}**")

    if preview.projected_pnl is not None:
        p1, p2, p3 = st.columns(3)
        p1.metric("Average buy price", fiat(stats.average_buy_price))
        p2.metric("Sell price", fiat(price))
        p3.metric("Projected PnL", fiat(preview.projected_pnl))

    if st.button("Record Operation", type="primary", use_container_width=True):
        try:
            ledger.record(tx_type, amount_fiat, price, tx_date, portfolio_id)
            st.success("✅ Operation recorded")
            st.session_state.analysis.pop(portfolio_id, None)
            st.rerun()
        except InsufficientBalanceError as e:
            st.error(
                f"❌ Not enough {settings.asset_symbol} for this sale: "
                f"requested {units(e.requested)}, available {units(e.available)}"
            )
        except TransactionValidationError as e:
            st.error(f"❌ {e}")


def render_history(ledger: LedgerService, portfolio_id: str):
    """Render the transaction history table with delete."""
    config = get_portfolio_config(portfolio_id)
    st.subheader(f"📜 History: {config.label}")

    transactions = ledger.transactions(portfolio_id)
    if not transactions:
        st.info("No operations recorded in this portfolio yet.")
        return

    st.dataframe(transactions_dataframe(transactions), use_container_width=True, hide_index=True)

    with st.expander("🗑️ Delete an operation"):
        st.warning("Deleting affects the calculations. Realized PnL of other sales is not recalculated.")
        labels = {tx.id: transaction_label(tx, settings.fiat_currency) for tx in transactions}
        selected_id = st.selectbox("Operation", options=list(labels), format_func=labels.get)
        if st.button("Delete", key="delete_tx"):
            if ledger.delete(selected_id):
                st.session_state.analysis.pop(portfolio_id, None)
                st.success("✅ Operation deleted")
                st.rerun()


def render_simulator(ledger: LedgerService, portfolio_id: str, stats):
    """Render the what-if sale simulator."""
    st.subheader("🧮 Sale Simulator")

    if stats.current_balance <= 0:
        st.info(f"No {settings.asset_symbol} in this portfolio to simulate a sale.")
        return

    col1, col2 = st.columns(2)
    with col1:
        amount = st.number_input(
            f"{settings.asset_symbol} to sell",
            min_value=0.0,
            value=float(round(stats.current_balance, 2)),
            step=10.0,
            key="sim_amount"
        )
    with col2:
        price = st.number_input(
            "Target price",
            min_value=0.0,
            value=float(round(stats.average_buy_price, 2)),
            step=1.0,
            key="sim_price"
        )

    if amount <= 0 or price <= 0:
        return

    result = ledger.simulate_sale(amount, price, portfolio_id)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Proceeds", fiat(result.proceeds))
    m2.metric("Cost basis", fiat(result.cost_basis))
    m3.metric("PnL", fiat(result.realized_pnl), format_pct(result.pnl_percentage))
    m4.metric("Remaining", units(result.remaining_balance))
    if result.exceeds_balance:
        st.warning(f"⚠️ This exceeds your balance of {units(stats.current_balance)}")


def render_ai_insight(ledger: LedgerService, portfolio_id: str):
    """Render the AI analysis of the current portfolio."""
    config = get_portfolio_config(portfolio_id)
    st.subheader("🤖 AI Financial Analysis")
    st.markdown("Get a performance summary and a short recommendation based on your buys and sells.")

    label = "🔄 Regenerate analysis" if portfolio_id in st.session_state.analysis else "✨ Generate Report"
    if st.button(label, use_container_width=True):
        with st.spinner("Analyzing your transactions..."):
            st.session_state.analysis[portfolio_id] = get_advisor().analyze_portfolio(
                ledger.snapshot(portfolio_id), config.label
            )

    analysis = st.session_state.analysis.get(portfolio_id)
    if analysis:
        st.markdown("---")
        st.markdown(analysis)


# ==================== MAIN APP ====================
def main():
    """Main application entry point."""
    st.title("💵 USDT Trader Pro")
    st.markdown("*Investment and PnL management*")

    render_sidebar()

    ledger: LedgerService = st.session_state.ledger
    portfolio_id = render_portfolio_selector()
    config = get_portfolio_config(portfolio_id)
    stats = ledger.stats(portfolio_id)

    st.markdown(f"#### Summary: {config.label}")
    render_stats(stats)

    tab1, tab2, tab3, tab4 = st.tabs([
        "📜 Operations", "➕ New Operation", "🧮 Simulate Sale", "🤖 AI Analysis"
    ])

    with tab1:
        render_history(ledger, portfolio_id)

    with tab2:
        render_transaction_form(ledger, portfolio_id, stats)

    with tab3:
        render_simulator(ledger, portfolio_id, stats)

    with tab4:
        render_ai_insight(ledger, portfolio_id)

    st.markdown("---")
    st.markdown(
        "<div style='text-align: center; color: gray;'>"
        "⚠️ For personal record keeping only. Not financial advice.</div>",
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
