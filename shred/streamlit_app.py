from __future__ import annotations

# Ensure the repository root is on sys.path so that absolute imports like `shred.*` work
# when Streamlit runs this file from within the shred/ directory on cloud runtimes.
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from typing import List

import streamlit as st

from shred.config import get_settings
from shred.logger import setup_logger
from shred.models import Exercise
from shred.models.history import format_seconds
from shred.services.photos import PhotoUploadResult
from shred.services.session import WorkoutSession, build_session

st.set_page_config(page_title="10-Week Shred", page_icon="🔥", layout="centered")
settings = get_settings()

# ========= Global CSS =========
st.markdown("""
<style>
.shred-title{ font-weight: 900; letter-spacing: .04em; margin-bottom: 0; }
.shred-sub{ color: #94a3b8; margin-top: 0; }
.chip{ padding:2px 8px; border-radius:999px; font-size:12px; background:#eef2f7; color:#334155; margin-right:.3rem; }
.chip.focus{ background:#fee2e2; color:#991b1b; }
.stButton > button{ height:34px !important; min-height:34px !important; }
</style>
""", unsafe_allow_html=True)
# ==============================


def get_session() -> WorkoutSession:
    """One controller per browser session, shared by every page."""
    if "workout_session" not in st.session_state:
        setup_logger(settings)
        st.session_state["workout_session"] = build_session(settings)
        st.session_state["photo_results"] = []
    return st.session_state["workout_session"]


def exercise_caption(ex: Exercise) -> str:
    parts: List[str] = []
    if ex.sets and ex.reps:
        parts.append(f"{ex.sets} × {ex.reps}")
    elif ex.sets:
        parts.append(f"{ex.sets} sets")
    if ex.duration:
        parts.append(ex.duration)
    if ex.weight:
        parts.append(ex.weight)
    return " · ".join(parts)


session = get_session()
# Every rerun counts as an activation: reconcile and open the next day if it is due
session.activate()

# Results posted by background photo uploads since the last rerun
pending: List[PhotoUploadResult] = st.session_state.get("photo_results", [])
while pending:
    res = pending.pop(0)
    if res.ok:
        st.toast(res.message or "Photo saved.")
    else:
        st.warning(res.message)

if not session.has_completed_initial_setup:
    st.markdown("<h1 class='shred-title'>10-WEEK SHRED</h1>", unsafe_allow_html=True)
    st.markdown("### 🔥 IF YOU DO EVERY WORKOUT IN THIS APP FOR THE NEXT TEN WEEKS, YOU WILL BE RIPPED")
    st.caption(session.motivational_phrase())
    if session.photos_enabled:
        initial = st.file_uploader("Upload an initial photo (optional)", type=["jpg", "jpeg", "png"])
        if initial is not None and st.button("Save photo"):
            res = session.save_initial_photo(initial.getvalue())
            if res.ok:
                st.toast("Initial photo saved.")
            else:
                st.warning(res.message)
    if st.button("LET'S GO!", type="primary", use_container_width=True):
        session.complete_initial_setup()
        st.rerun()
    st.stop()

week, day = session.current_week, session.current_day

if session.program is None or week is None or day is None:
    st.error("Could not load workout data.")
    if session.load_error:
        st.caption(session.load_error)
    if st.button("Reload"):
        session.reload()
        st.rerun()
    st.stop()

st.markdown(f"<h2 class='shred-title'>{week.name}</h2>", unsafe_allow_html=True)
st.markdown(f"<p class='shred-sub'>{day.name}</p>", unsafe_allow_html=True)
st.markdown(f"<span class='chip focus'>Focus: {day.focus}</span>", unsafe_allow_html=True)
if day.description:
    st.write(day.description)
st.caption(session.motivational_phrase())

# ----- Timer -----
timer = session.timer


@st.fragment(run_every=settings.TIMER_TICK_SECONDS if timer.running else None)
def elapsed_metric() -> None:
    # Reruns only this block while the timer runs
    st.metric("Elapsed", format_seconds(timer.current_elapsed()))


t1, t2, t3 = st.columns([2, 1, 1])
with t1:
    elapsed_metric()
if timer.running:
    if t2.button("⏸ Pause", use_container_width=True):
        session.pause_timer()
        st.rerun()
else:
    label = "▶ Resume" if timer.was_started else "▶ Start"
    if t2.button(label, use_container_width=True):
        session.start_timer()
        st.rerun()
if t3.button("🔄 Refresh", use_container_width=True):
    st.rerun()

# ----- Exercises -----
st.subheader("Today's Exercises")
for i, ex in enumerate(day.exercises):
    key = f"ex-{session.cursor.week_index}-{session.cursor.day_index}-{i}"
    st.session_state[key] = ex.is_completed
    st.checkbox(ex.title, key=key, on_change=session.toggle_exercise, args=(i,))
    cap = exercise_caption(ex)
    if ex.description or cap:
        st.caption(" | ".join(p for p in [cap, ex.description or ""] if p))

done = sum(1 for ex in day.exercises if ex.is_completed)
st.progress(done / len(day.exercises) if day.exercises else 0.0, text=f"{done}/{len(day.exercises)} exercises")

# ----- Completion -----
if session.completed_today:
    st.success("Workout complete! Your next workout unlocks at midnight.")
    if st.button("Unlock next workout now", use_container_width=True):
        session.unlock_next_day()
        st.rerun()
else:
    if st.button("✅ Complete workout", type="primary", use_container_width=True):
        record = session.complete_workout()
        st.session_state["last_record_id"] = record.id
        st.balloons()
        st.rerun()

last_id = st.session_state.get("last_record_id")
if last_id is not None and session.photos_enabled and session.completed_today:
    with st.expander("📸 Track your progress", expanded=True):
        shot = st.camera_input("Take a photo") or st.file_uploader("…or pick one", type=["jpg", "jpeg", "png"])
        if shot is not None and st.button("Save progress photo"):
            results = st.session_state["photo_results"]
            session.attach_photo_async(last_id, shot.getvalue(), callback=results.append)
            st.session_state["last_record_id"] = None
            st.info("Uploading in the background. You can keep going.")

with st.sidebar:
    st.header("Progress")
    st.write(f"Workouts completed: **{len(session.ledger)}**")
    latest = session.ledger.most_recent()
    if latest is not None:
        st.caption(f"Last: {latest.week_name} / {latest.day_name} on {latest.completion_date:%b %d}")
    with st.popover("⚠️ Reset progress"):
        st.write("This clears your position, checked exercises and workout history.")
        if st.button("Yes, start over", type="primary"):
            session.full_reset()
            st.toast("Progress reset.")
            st.rerun()
