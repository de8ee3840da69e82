"""
CompTIA Project+ Bilingual Practice Exam - Streamlit Web App
============================================================
Run:      streamlit run projectplus_app.py
Requires: streamlit, anthropic, pydantic, pydantic-settings, loguru
Secret:   ANTHROPIC_API_KEY = "sk-ant-..."  (environment, .env or Streamlit secrets)
"""

import asyncio

import streamlit as st
from loguru import logger

from pkexam.config import Settings, get_settings
from pkexam.loader import BatchLoader
from pkexam.logging_setup import configure_logging
from pkexam.models import Domain
from pkexam.provider import ContentProvider
from pkexam.scorer import finish_exam
from pkexam.session import ExamSession

# ─────────────────────────────────────────────────────────────────────────────
# PAGE CONFIG
# ─────────────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="CompTIA Project+ Exam",
    page_icon="📋",
    layout="centered",
    initial_sidebar_state="expanded",
)

DOMAIN_COLORS = {
    Domain.PROJECT_BASICS:           "#3a8ae0",
    Domain.PROJECT_CONSTRAINTS:      "#e08c3a",
    Domain.COMMUNICATION_AND_CHANGE: "#3aae6a",
    Domain.TOOLS_AND_DOCUMENTATION:  "#9b5fcf",
}

LANGUAGES = {"both": "English + 中文", "en": "English", "zh": "中文"}

# ─────────────────────────────────────────────────────────────────────────────
# SETUP
# ─────────────────────────────────────────────────────────────────────────────
@st.cache_resource
def get_app_settings() -> Settings:
    """Load settings once; fall back to Streamlit secrets for the API key."""
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.anthropic_api_key:
        try:
            key = st.secrets["ANTHROPIC_API_KEY"]
        except Exception:
            key = ""
        if key:
            settings = settings.model_copy(update={"anthropic_api_key": key})
        else:
            logger.warning("ANTHROPIC_API_KEY is not configured; question requests will fail")
    return settings


def init_session():
    settings = get_app_settings()
    if "exam" not in st.session_state:
        st.session_state.exam = ExamSession(
            total_target=settings.questions_per_set,
            set_count=settings.set_count,
        )
    if "loader" not in st.session_state:
        st.session_state.loader = BatchLoader(ContentProvider(settings), settings.batch_size)
    defaults = {
        "result":    None,
        "error_msg": None,
        "lang":      "both",
        "elapsed":   0,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def reset_exam():
    st.session_state.exam.reset()
    st.session_state.result    = None
    st.session_state.error_msg = None
    st.session_state.elapsed   = 0


def _load(target_index):
    """Ensure a question is loaded. Returns True on success, False on failure."""
    loader = st.session_state.loader
    ok = asyncio.run(loader.ensure_loaded(st.session_state.exam, target_index))
    st.session_state.error_msg = None if ok else (loader.last_error or "No questions were returned.")
    return ok


def _finish():
    exam = st.session_state.exam
    st.session_state.elapsed = exam.elapsed_seconds()
    with st.spinner("Analyzing your performance…"):
        st.session_state.result = asyncio.run(
            finish_exam(exam, st.session_state.loader.provider)
        )


def _fmt(seconds):
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    return f"{h}:{m:02d}:{s:02d}" if h else f"{m:02d}:{s:02d}"


def _bilingual(en, zh):
    lang = st.session_state.lang
    if lang == "en":
        return en
    if lang == "zh":
        return zh
    return f"{en}\n\n{zh}"


def _show_load_error():
    st.error(f"Failed to load questions: {st.session_state.error_msg}")
    st.write("**Common fixes:**")
    st.write("- Check ANTHROPIC_API_KEY is set in the environment or Streamlit Secrets")
    st.write("- Make sure your Anthropic account has credits")
    st.write("- Try clicking Retry below")

# ─────────────────────────────────────────────────────────────────────────────
# CSS
# ─────────────────────────────────────────────────────────────────────────────
CSS = """
<style>
html, body, [class*="css"] { font-family: 'Inter', 'Noto Sans SC', sans-serif; }
.stApp { background-color: #0a0a0a; color: #ededed; }
section[data-testid="stSidebar"] { background-color: #141414; border-right: 1px solid #262626; }
div[data-testid="stProgress"] > div > div { background-color: #ededed !important; }
[data-testid="stMetricValue"] { font-size: 2rem !important; font-weight: 900 !important; }
.badge {
    display: inline-block; border-radius: 6px;
    padding: 3px 10px; font-size: 12px; font-weight: 700; margin-right: 6px;
}
</style>
"""

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — HOME
# ─────────────────────────────────────────────────────────────────────────────
def screen_home():
    exam = st.session_state.exam
    st.markdown(CSS, unsafe_allow_html=True)
    st.markdown("# 📋 CompTIA Project+ (PK0-005)")
    st.markdown(
        f"*AI-powered bilingual exam simulator. {exam.set_count} full sets, "
        f"{exam.set_count * exam.total_target} questions, instant analysis.*"
    )
    st.divider()

    if st.session_state.error_msg:
        _show_load_error()

    cols = st.columns(3)
    for set_id in range(1, exam.set_count + 1):
        with cols[(set_id - 1) % 3]:
            st.caption(f"SET 0{set_id}")
            st.markdown(f"### Practice Exam {set_id}")
            st.caption(f"{exam.total_target} Questions • Bilingual • AI Analysis")
            if st.button("Start", key=f"set_{set_id}", use_container_width=True):
                exam.select_set(set_id)
                with st.spinner("Claude is writing your first questions…"):
                    ok = _load(0)
                if not ok:
                    # Nothing to show yet: go back to the picker with the error.
                    err = st.session_state.error_msg
                    reset_exam()
                    st.session_state.error_msg = err
                st.rerun()

    st.divider()
    for domain in Domain:
        st.markdown(f"- {domain.value}")

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — TEST
# ─────────────────────────────────────────────────────────────────────────────
def screen_test():
    st.markdown(CSS, unsafe_allow_html=True)
    exam = st.session_state.exam
    idx  = exam.current_index
    q    = exam.current_question

    if q is None:
        with st.spinner("Generating next batch…"):
            ok = _load(idx)
        if not ok:
            _show_load_error()
            if st.button("🔄 Retry"):
                st.rerun()
            return
        st.rerun()

    total_q  = exam.total_target
    answer   = exam.answer_for(q.id)
    answered = answer is not None

    # ── Top bar ───────────────────────────────────────────────────────────
    left, mid, right = st.columns([4, 2, 1])
    with left:
        st.progress((idx + 1) / total_q)
        st.caption(f"Q{idx+1} of {total_q}  ·  Set {exam.current_set}  ·  "
                   f"{exam.answered_count} answered")
    with mid:
        st.caption(f"⏱ {_fmt(exam.elapsed_seconds())}")
    with right:
        if st.button("Finish"):
            _finish()
            st.rerun()

    st.divider()

    color = DOMAIN_COLORS[q.domain]
    st.markdown(
        f'<span class="badge" style="background:{color}22;color:{color};'
        f'border:1px solid {color}55;">{q.domain.value}</span>',
        unsafe_allow_html=True,
    )

    # ── Question ──────────────────────────────────────────────────────────
    st.markdown(f"### {_bilingual(q.question_en, q.question_zh)}")
    st.write("")

    # ── Options ───────────────────────────────────────────────────────────
    if not answered:
        for opt in q.options:
            label = _bilingual(opt.text_en, opt.text_zh).replace("\n\n", " / ")
            if st.button(f"**{opt.key}.** {label}", key=f"opt_{q.id}_{opt.key}",
                         use_container_width=True):
                exam.record_answer(q.id, opt.key)
                st.rerun()
    else:
        for opt in q.options:
            label = _bilingual(opt.text_en, opt.text_zh).replace("\n\n", " / ")
            if opt.key == q.correct_answer:
                st.success(f"**{opt.key}.** {label}  ✓")
            elif opt.key == answer:
                st.error(f"**{opt.key}.** {label}  ✗  ← your answer")
            else:
                st.markdown(f"**{opt.key}.** {label}")

    # ── Explanation ───────────────────────────────────────────────────────
    if answered:
        if q.is_correct(answer):
            st.success("✅ Correct! 回答正确！")
        else:
            st.error(f"❌ Incorrect — correct answer was **{q.correct_answer}**")
        with st.expander("📖 Explanation / 解析", expanded=True):
            st.markdown(_bilingual(q.explanation_en, q.explanation_zh))

    # ── Navigation ────────────────────────────────────────────────────────
    st.divider()
    nl, nr = st.columns(2)

    with nl:
        if idx > 0 and st.button("← Previous", use_container_width=True):
            exam.back()
            st.rerun()

    with nr:
        if answered:
            done  = exam.is_last_position or exam.all_answered
            label = "🏁 Finish Exam" if done else "Next Question →"
            if st.button(label, type="primary", use_container_width=True):
                if done:
                    _finish()
                    st.rerun()
                with st.spinner("Generating next batch…"):
                    ok = _load(idx + 1)
                if ok:
                    exam.advance()
                    st.rerun()
                st.error(f"⚠️ {st.session_state.error_msg}")
                st.write("Click the button again to retry.")

    # ── Sidebar navigator ─────────────────────────────────────────────────
    with st.sidebar:
        st.markdown("### 🌐 Language")
        st.radio("Display", list(LANGUAGES), format_func=LANGUAGES.get, key="lang")
        st.markdown("### 📋 Progress")
        cols = st.columns(5)
        for i, loaded in enumerate(exam.questions):
            c = cols[i % 5]
            a = exam.answer_for(loaded.id)
            if a is not None:
                c.markdown("✅" if loaded.is_correct(a) else "❌")
            elif i == idx:
                c.markdown(f"**{i+1}**")
            else:
                c.markdown(f"_{i+1}_")
        st.divider()
        st.caption(f"Loaded {exam.loaded_count} of {total_q}")
        if st.button("🏠 Home", use_container_width=True):
            reset_exam()
            st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — RESULTS
# ─────────────────────────────────────────────────────────────────────────────
def screen_results():
    st.markdown(CSS, unsafe_allow_html=True)
    result    = st.session_state.result
    pass_mark = get_app_settings().pass_mark

    st.markdown("# 🎓 Your Results")

    c1, c2, c3 = st.columns(3)
    c1.metric("Score",   f"{result.score}%")
    c2.metric("Correct", f"{result.correct_count}/{result.total_questions}")
    c3.metric("Time",    _fmt(st.session_state.elapsed))

    if result.passed(pass_mark):
        st.success(f"🎯 **PASS** — {result.score}% (pass mark {pass_mark}%)")
    else:
        st.warning(f"📚 **FAIL** — {result.score}% (pass mark {pass_mark}%). Keep studying!")

    st.divider()
    st.markdown("### 📚 By Domain")
    for domain, ds in result.domain_breakdown.items():
        st.progress(ds.percent / 100,
                    text=f"{domain.value} — {ds.correct}/{ds.total} ({ds.percent}%)")

    st.divider()
    st.markdown("### 🤖 AI Analysis")
    st.markdown(result.ai_analysis)

    st.divider()
    if st.button("🔄 New Exam", type="primary", use_container_width=True):
        reset_exam()
        st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# MAIN
# ─────────────────────────────────────────────────────────────────────────────
def main():
    init_session()
    exam = st.session_state.exam
    if st.session_state.result is not None:
        screen_results()
    elif exam.is_active:
        screen_test()
    else:
        screen_home()

if __name__ == "__main__":
    main()
