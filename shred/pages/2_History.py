from __future__ import annotations

import streamlit as st

from shred.services.session import WorkoutSession

st.set_page_config(page_title="Workout History", page_icon="📅")

st.title("History")

session: WorkoutSession | None = st.session_state.get("workout_session")
if session is None:
    st.info("No workout session yet. Open the main page first.")
else:
    entries = sorted(session.ledger.entries, key=lambda r: r.completion_date, reverse=True)
    if not entries:
        st.info("No completed workouts yet.")
    else:
        rows = [
            {
                "Date": r.completion_date.strftime("%Y-%m-%d %H:%M"),
                "Week": r.week_name,
                "Day": r.day_name,
                "Exercises": f"{r.completed_exercises}/{r.total_exercises}",
                "Duration": r.formatted_duration or "",
                "Photo": "📸" if r.photo_id else "",
            }
            for r in entries
        ]
        st.dataframe(rows, use_container_width=True, hide_index=True)

        with_photos = [r for r in entries if r.photo_id]
        if with_photos and session.photos_enabled:
            choice = st.selectbox(
                "Progress photo",
                with_photos,
                format_func=lambda r: f"{r.week_name} / {r.day_name} ({r.completion_date:%b %d})",
            )
            data = session.fetch_photo(choice.photo_id) if choice else None
            if data:
                st.image(data, use_container_width=True)
            else:
                st.warning("Photo could not be loaded right now.")
