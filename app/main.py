"""
Streamlit Frontend for BillSplit Voice

A text chat stand-in for the voice loop: every message goes through the
same ConversationFlow a microphone transcript would.

DESIGN PRINCIPLES:
1. One conversation per browser session
2. Every reply is shown exactly as it would be spoken
3. The ledger is always visible next to the chat
"""

import asyncio

import streamlit as st

from billsplit.config import validate_all_settings
from billsplit.models.responses import Added, Settle
from billsplit.orchestrator import ConversationFlow, create_app_components


st.set_page_config(
    page_title="BillSplit Voice",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .route-box {
        padding: 12px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
        font-size: 0.9em;
    }
</style>
""", unsafe_allow_html=True)


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
    """Get or create the ledger-backed components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize ledger storage: {e}")
        return create_app_components(use_storage=False)


def get_flow() -> ConversationFlow:
    """One ConversationFlow per browser session, sharing the ledger."""
    if "flow" not in st.session_state:
        base_flow, _ = get_components()
        st.session_state.flow = base_flow.new_conversation()
    return st.session_state.flow


def main():
    """Main application entry point."""
    flow = get_flow()

    if "messages" not in st.session_state:
        st.session_state.messages = []
    if "last_result" not in st.session_state:
        st.session_state.last_result = None

    render_sidebar(flow)

    st.title("💸 BillSplit Voice")
    st.markdown(
        "Say who owes whom, e.g. *Alice owes me 12.50 for lunch* or *I owe Bob 20*."
    )

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Who owes whom?")
    if prompt:
        st.session_state.messages.append({"role": "user", "content": prompt})
        try:
            result = run_async(flow.handle_utterance(prompt))
        except Exception as e:
            st.error(f"Something went wrong: {e}")
            return
        st.session_state.last_result = result
        st.session_state.messages.append({"role": "assistant", "content": result.reply})
        st.rerun()


def render_sidebar(flow: ConversationFlow):
    """Ledger summary, last route and session controls."""
    st.sidebar.title("📒 Ledger")

    summary = run_async(flow.ledger_summary())

    st.sidebar.markdown("**Owes me**")
    if summary["owes_me"]:
        for name, amount in summary["owes_me"]:
            st.sidebar.markdown(f"- {name}: {amount}")
    else:
        st.sidebar.caption("Nobody owes you anything.")

    st.sidebar.markdown("**I owe**")
    if summary["i_owe"]:
        for name, amount in summary["i_owe"]:
            st.sidebar.markdown(f"- {name}: {amount}")
    else:
        st.sidebar.caption("You don't owe anybody.")

    if st.sidebar.button("✅ Settle next balance"):
        result = run_async(flow.settle_next())
        st.session_state.messages.append({"role": "assistant", "content": result.reply})
        st.rerun()

    st.sidebar.markdown("---")

    result = st.session_state.get("last_result")
    if result is not None and isinstance(result.response, Added):
        decision = result.response.command.decision
        st.sidebar.markdown(f"""
        <div class="route-box">
            <strong>Route:</strong> {decision.route.value}<br>
            <strong>Reasons:</strong> {", ".join(decision.reason_tags)}<br>
            <strong>Complexity:</strong> {decision.complexity_score}
        </div>
        """, unsafe_allow_html=True)
    elif result is not None and isinstance(result.response, Settle):
        st.sidebar.caption(f"Settled: {result.response.target_name or 'automatic'}")

    session = flow.session
    if session.pending_draft is not None or session.pending_disambiguation is not None:
        st.sidebar.caption(
            f"Waiting for details ({session.clarification_turns} of 3 questions asked)"
        )

    if st.sidebar.button("🔄 New conversation"):
        flow.reset()
        st.session_state.messages = []
        st.session_state.last_result = None
        st.rerun()

    with st.sidebar.expander("⚙️ Settings status"):
        status = validate_all_settings()
        for name in ("ledger", "voice", "app"):
            if status.get(name, False):
                st.success(f"✅ {name}")
            else:
                st.error(f"❌ {name} - {status.get(f'{name}_error', 'invalid')}")


if __name__ == "__main__":
    main()
