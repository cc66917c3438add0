"""Night Sky Card: Streamlit panel for scrubbing through star charts by date.

Run with:
    uv run streamlit run src/nightskycard/app.py
"""

import asyncio
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv
from streamlit_js_eval import streamlit_js_eval

load_dotenv()

from nightskycard.cache import JsonFileChartCache  # noqa: E402
from nightskycard.client import ProxyClient  # noqa: E402
from nightskycard.config import ClientSettings, log_level  # noqa: E402
from nightskycard.dates import format_coordinates, pretty  # noqa: E402
from nightskycard.i18n import t  # noqa: E402
from nightskycard.logging_setup import setup_logging  # noqa: E402
from nightskycard.panel import ChartPanel  # noqa: E402

setup_logging(log_level())

# --- Language detection (browser-first via streamlit-js-eval) ---
# On the first run the JS call returns None; the rerun triggered by
# streamlit_js_eval fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "ko" if _browser_lang.lower().startswith("ko") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(page_title=t("page_title", _lang), page_icon="✦", layout="centered")

st.markdown(
    """
    <style>
    iframe[src*="streamlit_js_eval"] { display: none !important; }
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #0d1b35 !important;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] { display: none !important; }
    .nsk-meta span { color: #aaaaaa; font-size: 0.8rem; display: block; }
    .nsk-meta strong { color: #e8d5a3; }
    .nsk-loading {
        height: 24rem; display: flex; align-items: center; justify-content: center;
        color: #7ec8e3;
    }
    .nsk-note { color: #778899; font-size: 0.85rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

# Wait for language detection before building the panel.
if "lang" not in st.session_state:
    st.stop()

# --- Panel (one per browser session, one cache per process) ---


@st.cache_resource
def _chart_cache(path: Path) -> JsonFileChartCache:
    return JsonFileChartCache(path)


if "panel" not in st.session_state:
    _settings = ClientSettings.from_env()
    _panel = ChartPanel(
        ProxyClient(_settings.proxy_url, timeout=_settings.timeout),
        _chart_cache(_settings.cache_path),
        lang=_lang,
    )
    asyncio.run(_panel.mount())
    st.session_state.panel = _panel

panel: ChartPanel = st.session_state.panel


def _on_slide() -> None:
    asyncio.run(panel.set_day_offset(int(st.session_state.day_offset)))


def _on_toggle_labels() -> None:
    asyncio.run(panel.toggle_labels())


def _on_refresh() -> None:
    asyncio.run(panel.refresh())


# --- Header ---
header_col, actions_col = st.columns([3, 1])
with header_col:
    st.title(t("page_title", _lang))
    st.caption(
        t("subtitle", _lang).format(
            place=panel.config.location.name, date=pretty(panel.date)
        )
    )
with actions_col:
    st.button(
        t("btn_labels_on" if panel.state.labels_on else "btn_labels_off", _lang),
        key="labels_btn",
        on_click=_on_toggle_labels,
        use_container_width=True,
    )

# --- Date slider ---
st.slider(
    t("label_slider", _lang),
    min_value=0,
    max_value=panel.total_days,
    value=panel.state.day_offset,
    key="day_offset",
    on_change=_on_slide,
)
st.caption(f"{panel.config.range_start} → {panel.config.range_end}")

# --- Chart ---
state = panel.state
if state.image_url:
    st.image(state.image_url, caption=panel.date, use_container_width=True)
    if not state.image_loaded:
        panel.mark_image_loaded()
else:
    st.markdown(
        f"<div class='nsk-loading'>{state.status}</div>", unsafe_allow_html=True
    )

# --- Footer ---
status_col, coords_col, source_col, refresh_col = st.columns([2, 2, 2, 1])
for col, label, value in (
    (status_col, t("label_status", _lang), state.status),
    (coords_col, t("label_coordinates", _lang), format_coordinates(panel.config.location)),
    (source_col, t("label_source", _lang), state.source),
):
    with col:
        st.markdown(
            f"<div class='nsk-meta'><span>{label}</span><strong>{value}</strong></div>",
            unsafe_allow_html=True,
        )
with refresh_col:
    st.button(t("btn_refresh", _lang), key="refresh_btn", on_click=_on_refresh)

st.markdown(f"<p class='nsk-note'>{t('note', _lang)}</p>", unsafe_allow_html=True)
