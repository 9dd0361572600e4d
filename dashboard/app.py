"""Streamlit dashboard for the Game Night Planner."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000").rstrip("/")

st.set_page_config(
    page_title="Game Night Planner",
    page_icon="🎲",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _auth_headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def login(admin_token: str) -> Optional[str]:
    try:
        response = requests.post(
            f"{API_BASE_URL}/login",
            json={"admin_token": admin_token},
            timeout=5,
        )
        response.raise_for_status()
        return response.json()["access_token"]
    except requests.exceptions.RequestException as e:
        st.error(f"Login failed: {e}")
        return None


def fetch_event(event_id: int) -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(f"{API_BASE_URL}/events/{event_id}", timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None


def fetch_schedule(event_id: int, preview: bool = False) -> Optional[List[Dict[str, Any]]]:
    """Persisted schedule, or a freshly computed one when ``preview`` is set."""
    suffix = "/preview" if preview else ""
    try:
        response = requests.get(
            f"{API_BASE_URL}/events/{event_id}/game_schedule{suffix}",
            timeout=10,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Schedule request failed: {e}")
        return None


def recalculate_schedule(event_id: int) -> Optional[List[Dict[str, Any]]]:
    try:
        response = requests.post(
            f"{API_BASE_URL}/events/{event_id}/game_schedule/recalculate",
            headers=_auth_headers(),
            timeout=10,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Recalculation failed: {e}")
        return None


def pin_game(event_id: int, game_id: int, start_time: str, duration_minutes: int) -> Optional[Dict[str, Any]]:
    try:
        response = requests.post(
            f"{API_BASE_URL}/events/{event_id}/game_schedule/pin",
            json={
                "game_id": game_id,
                "start_time": start_time,
                "duration_minutes": duration_minutes,
            },
            headers=_auth_headers(),
            timeout=10,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Pinning failed: {e}")
        return None


def fetch_attendance(event_id: int) -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(f"{API_BASE_URL}/events/{event_id}/attendance", timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Attendance request failed: {e}")
        return None


def schedule_frame(entries: List[Dict[str, Any]]) -> pd.DataFrame:
    frame = pd.DataFrame(entries)
    if frame.empty:
        return frame
    frame["start_time"] = pd.to_datetime(frame["start_time"], utc=True)
    frame["end_time"] = frame["start_time"] + pd.to_timedelta(frame["duration_minutes"], unit="m")
    frame["status"] = frame["is_pinned"].map({True: "pinned", False: "suggested"})
    columns = ["game_name", "start_time", "end_time", "status", "availability_score", "game_id"]
    return frame.sort_values("start_time")[columns]


# ==========================================
# UI Page Functions
# ==========================================
def render_schedule_page(event_id: int) -> None:
    st.header("🗓️ Game Schedule")
    event = fetch_event(event_id)
    if event:
        st.markdown(f"**{event['title']}**: {event['time_begin']} to {event['time_end']}")

    preview = st.toggle("Preview without saving", value=False)
    col1, col2 = st.columns(2)
    with col1:
        refresh = st.button("Load Schedule", type="primary")
    with col2:
        recalc = st.button("Recalculate & Save")

    entries: Optional[List[Dict[str, Any]]] = None
    if recalc:
        with st.spinner("Rescheduling suggested games..."):
            if recalculate_schedule(event_id) is not None:
                entries = fetch_schedule(event_id)
    elif refresh:
        entries = fetch_schedule(event_id, preview=preview)

    if entries is not None:
        frame = schedule_frame(entries)
        if frame.empty:
            st.info("No game could be placed. Check votes and attendance.")
        else:
            metric_col1, metric_col2 = st.columns(2)
            metric_col1.metric("Pinned", int((frame["status"] == "pinned").sum()))
            metric_col2.metric("Suggested", int((frame["status"] == "suggested").sum()))
            st.dataframe(frame, use_container_width=True)

    st.write("### Pin a game")
    pin_col1, pin_col2, pin_col3 = st.columns(3)
    with pin_col1:
        game_id = st.number_input("Game ID", min_value=1, value=730)
    with pin_col2:
        start_time = st.text_input("Start (ISO 8601)", value="")
    with pin_col3:
        duration = st.number_input("Duration (minutes)", min_value=30, max_value=720, value=120, step=30)
    if st.button("Pin Game") and start_time:
        pinned = pin_game(event_id, int(game_id), start_time, int(duration))
        if pinned:
            st.success(f"Pinned {pinned['game_name']} at {pinned['start_time']}")


def render_attendance_page(event_id: int) -> None:
    st.header("👥 Attendance")
    summary = fetch_attendance(event_id)
    if not summary:
        return

    buckets = pd.DataFrame(summary.get("buckets", []))
    if buckets.empty:
        st.info("This event has no attendance buckets.")
        return

    if summary.get("peak_bucket"):
        st.metric("Busiest period", summary["peak_bucket"])
    st.bar_chart(buckets.set_index("label")["headcount"])

    attendees = summary.get("attendees", [])
    if attendees:
        st.write("### Attendees")
        st.dataframe(pd.DataFrame(attendees), use_container_width=True)


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("Game Night Planner")
    st.sidebar.markdown("---")

    event_id = int(st.sidebar.number_input("Event ID", min_value=1, value=1))
    page = st.sidebar.radio("Navigation", ["Game Schedule", "Attendance"])

    st.sidebar.markdown("---")
    admin_token = st.sidebar.text_input("Admin token", type="password")
    if st.sidebar.button("Login") and admin_token:
        token = login(admin_token)
        if token:
            st.session_state["access_token"] = token
            st.sidebar.success("Logged in")
    st.sidebar.caption(f"API: {API_BASE_URL}")

    if page == "Game Schedule":
        render_schedule_page(event_id)
    elif page == "Attendance":
        render_attendance_page(event_id)


if __name__ == "__main__":
    main()
