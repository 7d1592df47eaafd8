"""
Streamlit Frontend for Expense Reports

The on-demand surface: pick a user and a period, preview the report,
and send it by email, SMS or both.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Preview before sending
3. Clear error messages in simple language
4. Per-channel feedback for every send
5. No hidden actions

The scheduler runs as its own process (expense-report-scheduler); this UI
never starts it.
"""

import asyncio
import html
from datetime import date, timedelta

import streamlit as st

from src.audit import create_correlation_id
from src.models.report import (
    DeliveryChannel,
    DeliveryMethod,
    DeliveryOutcome,
    ReportInterval,
)
from src.orchestrator import ReportFlow, create_app_components
from src.reports import DataError, format_amount, resolve_interval
from src.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="Expense Reports",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


METHOD_LABELS = {
    DeliveryMethod.BOTH: "📧 Email + 📱 SMS",
    DeliveryMethod.EMAIL: "📧 Email only",
    DeliveryMethod.SMS: "📱 SMS only",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    report_flow, _, _ = get_components()

    # Sidebar navigation
    st.sidebar.title("💰 Expense Reports")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Generate Report", "📤 Send Report", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Choose the user and the period
        2. Preview the report
        3. Send it by email, SMS or both

        Reports are also sent automatically every night.
        """
    )

    # Route to appropriate page
    if page == "📊 Generate Report":
        render_generate_page(report_flow)
    elif page == "📤 Send Report":
        render_send_page(report_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_period_inputs(key: str) -> tuple[str, date, date]:
    """User id plus an inclusive date range, with interval shortcuts."""
    user_id = st.text_input("User ID", key=f"{key}_user")

    shortcut = st.selectbox(
        "Period",
        options=[None] + list(ReportInterval),
        format_func=lambda x: "Custom" if x is None else x.value.title(),
        key=f"{key}_interval",
    )

    if shortcut is not None:
        date_range = resolve_interval(shortcut)
        start, end = date_range.start_date, date_range.end_date
        st.caption(f"{start} to {end}")
    else:
        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input(
                "Start date",
                value=date.today() - timedelta(days=7),
                key=f"{key}_start",
            )
        with col2:
            end = st.date_input("End date", value=date.today(), key=f"{key}_end")

    return user_id.strip(), start, end


def render_summary_metrics(summary):
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", f"+{format_amount(summary.total_credit)}")
    col2.metric("Total Expenses", f"-{format_amount(summary.total_debit)}")
    col3.metric("Net Balance", format_amount(summary.net))


def render_generate_page(report_flow: ReportFlow):
    """Render the report preview page."""
    st.title("📊 Generate Report")
    st.markdown("Preview a report without sending it.")

    user_id, start, end = render_period_inputs("generate")

    if st.button("📊 Generate", type="primary") and user_id:
        with st.spinner("Building your report..."):
            try:
                bundle = run_async(
                    report_flow.generate_report(
                        user_id,
                        start,
                        end,
                        correlation_id=create_correlation_id(),
                    )
                )
            except ValidationError as e:
                for issue in e.issues:
                    st.error(f"❌ {issue.message}")
                return
            except DataError as e:
                st.error(f"Could not build the report: {e}")
                return

        render_summary_metrics(bundle.summary)
        st.markdown(f"**Transactions:** {bundle.summary.transaction_count}")

        tab_text, tab_sms = st.tabs(["📝 Full Report", "📱 SMS Summary"])
        with tab_text:
            st.code(bundle.report_text, language=None)
        with tab_sms:
            st.code(bundle.short_summary, language=None)
            st.caption(f"{len(bundle.short_summary)} characters")


def render_send_page(report_flow: ReportFlow):
    """Render the report delivery page."""
    st.title("📤 Send Report")
    st.markdown("Generate a report and deliver it right away.")

    user_id, start, end = render_period_inputs("send")

    method = st.radio(
        "Send via",
        options=list(METHOD_LABELS),
        format_func=METHOD_LABELS.get,
        horizontal=True,
    )

    if st.button("📤 Send Report", type="primary") and user_id:
        with st.spinner("Generating and sending..."):
            try:
                result = run_async(
                    report_flow.send_report(
                        user_id,
                        start,
                        end,
                        method,
                        correlation_id=create_correlation_id(),
                    )
                )
            except ValidationError as e:
                for issue in e.issues:
                    st.error(f"❌ {issue.message}")
                return
            except DataError as e:
                st.error(f"Could not build the report: {e}")
                return

        render_summary_metrics(result.summary)

        for channel in result.results.attempted:
            outcome = getattr(result.results, channel.value)
            st.markdown(channel_status_html(channel, outcome), unsafe_allow_html=True)


def channel_status_html(channel: DeliveryChannel, outcome: DeliveryOutcome) -> str:
    """Styled result box for one channel. Transport error text is escaped."""
    if outcome.success:
        return f"""
        <div class="success-box">
            ✅ {channel.value.upper()} sent
        </div>
        """
    return f"""
        <div class="error-box">
            ❌ {channel.value.upper()} failed: {html.escape(outcome.error or "")}
        </div>
        """


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    # Check services
    from src.config import get_settings, validate_all_settings

    status = validate_all_settings()

    services = [
        ("Email (SMTP)", "email"),
        ("SMS (Twilio)", "twilio"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Scheduler", "scheduler"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("scheduler"):
        scheduler = get_settings().scheduler
        st.markdown(
            f"**Daily report schedule:** `{scheduler.schedule}` "
            f"({scheduler.timezone or 'server time'})"
        )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your "
        "SMTP, Twilio and Google Sheets credentials."
    )


if __name__ == "__main__":
    main()
