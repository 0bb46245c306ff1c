import requests
import streamlit as st

# =========================================================
# CONFIG
# =========================================================
API_BASE = "http://localhost:8080"

st.set_page_config(
    page_title="arXiv Paper Assistant",
    layout="wide",
)

# =========================================================
# STYLES
# =========================================================
st.markdown(
    """
    <style>
    .note { font-size: 15px; line-height: 1.6; }
    .stChatMessage { padding: 12px; border-radius: 8px; }
    .stChatMessage.user { background-color: #f0f2f6; }
    .stChatMessage.assistant { background-color: #ffffff; }
    </style>
    """,
    unsafe_allow_html=True,
)

# =========================================================
# API HELPERS
# =========================================================
def api(method: str, path: str, timeout: int = 60, **kwargs):
    try:
        r = requests.request(method, f"{API_BASE}{path}", timeout=timeout, **kwargs)
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection error: {e}")
        return None

# =========================================================
# STATE MANAGEMENT
# =========================================================
for key, default in {
    "paper_url": "",
    "paper_name": "",
    "notes": [],
    "answers": [],
    "papers": [],
    "pending_question": None,
}.items():
    if key not in st.session_state:
        st.session_state[key] = default

# =========================================================
# LOAD DATA
# =========================================================
def refresh_papers():
    data = api("GET", "/papers")
    st.session_state.papers = data if data else []


def select_paper(url: str, name: str):
    st.session_state.paper_url = url
    st.session_state.paper_name = name
    st.session_state.answers = []


def ask(question: str):
    with st.spinner("Thinking..."):
        resp = api(
            "POST",
            "/qa",
            timeout=120,
            json={
                "question": question,
                "paperUrl": st.session_state.paper_url,
                "name": st.session_state.paper_name,
            },
        )
    if resp is not None:
        st.session_state.answers.append({"question": question, "answers": resp})


refresh_papers()

# =========================================================
# SIDEBAR
# =========================================================
st.sidebar.title("📚 Processed Papers")

for p in st.session_state.papers:
    if st.sidebar.button(p["name"], key=f"paper-{p['arxiv_url']}", use_container_width=True):
        select_paper(p["arxiv_url"], p["name"])
        st.rerun()

if not st.session_state.papers:
    st.sidebar.caption("No papers processed yet")

# =========================================================
# PROCESS PAPER
# =========================================================
st.title("📄 arXiv Paper Assistant")

with st.form("process_paper"):
    url = st.text_input("Paper URL (PDF)", value=st.session_state.paper_url)
    name = st.text_input("Paper name", value=st.session_state.paper_name)
    submitted = st.form_submit_button("Process paper")

if submitted:
    if not url.strip() or not name.strip():
        st.warning("Both the paper URL and name are required.")
    else:
        select_paper(url.strip(), name.strip())
        with st.spinner("Downloading, embedding and taking notes..."):
            notes = api(
                "POST",
                "/process_paper",
                timeout=600,
                json={"paperUrl": url.strip(), "paperName": name.strip()},
            )
        if notes is not None:
            st.session_state.notes = notes
            refresh_papers()

if st.session_state.notes:
    with st.expander(f"📝 Notes ({len(st.session_state.notes)})", expanded=False):
        for n in st.session_state.notes:
            pages = ", ".join(str(p) for p in n.get("pageNumbers", []))
            st.markdown(f"- {n['note']} _(pages {pages})_")

# =========================================================
# QUESTION ANSWERING
# =========================================================
if not st.session_state.paper_url:
    st.info("Process a paper or pick one from the sidebar to start asking questions.")
    st.stop()

st.caption(f"Asking about **{st.session_state.paper_name}**")

# Follow-up question clicked in the previous run
if st.session_state.pending_question:
    question, st.session_state.pending_question = st.session_state.pending_question, None
    ask(question)

query = st.chat_input("Ask about the paper...")
if query:
    ask(query)

for i, turn in enumerate(st.session_state.answers):
    with st.chat_message("user"):
        st.markdown(turn["question"])
    with st.chat_message("assistant"):
        for j, a in enumerate(turn["answers"]):
            st.markdown(a["answer"])
            for k, followup in enumerate(a.get("followupQuestions", [])):
                if st.button(followup, key=f"followup-{i}-{j}-{k}"):
                    st.session_state.pending_question = followup
                    st.rerun()
