"""Simple two-language (ko/en) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "ko": "밤하늘",
        "en": "Night Sky",
    },
    "label_slider": {
        "ko": "날짜 슬라이더",
        "en": "Date slider",
    },
    "btn_labels_on": {
        "ko": "별자리 이름: 켜짐",
        "en": "Labels: On",
    },
    "btn_labels_off": {
        "ko": "별자리 이름: 꺼짐",
        "en": "Labels: Off",
    },
    "btn_refresh": {
        "ko": "새로고침",
        "en": "Refresh",
    },
    "label_status": {
        "ko": "상태",
        "en": "Status",
    },
    "label_coordinates": {
        "ko": "좌표",
        "en": "Coordinates",
    },
    "label_source": {
        "ko": "출처",
        "en": "Source",
    },
    "status_idle": {
        "ko": "대기 중",
        "en": "Idle",
    },
    "status_generating": {
        "ko": "별자리 지도를 만드는 중…",
        "en": "Generating star chart…",
    },
    "status_loaded": {
        "ko": "불러왔어요.",
        "en": "Loaded.",
    },
    "status_degraded": {
        "ko": "API가 느리거나 응답하지 않아요 - 유명인의 밤하늘을 보여드릴게요.",
        "en": "API slow/unavailable - showing a celebrity sky.",
    },
    "status_failed": {
        "ko": "별자리 지도를 불러올 수 없어요.",
        "en": "Unable to load star chart.",
    },
    "source_none": {
        "ko": "—",
        "en": "—",
    },
    "source_cache": {
        "ko": "캐시",
        "en": "Cache",
    },
    "source_live": {
        "ko": "AstronomyAPI",
        "en": "AstronomyAPI",
    },
    "source_celebrity_cache": {
        "ko": "유명인 캐시 · {label}",
        "en": "Celebrity cache · {label}",
    },
    "source_celebrity_live": {
        "ko": "유명인 대체 (AstronomyAPI) · {label}",
        "en": "Celebrity fallback (AstronomyAPI) · {label}",
    },
    "source_fallback": {
        "ko": "대체: {label}",
        "en": "Fallback: {label}",
    },
    "subtitle": {
        "ko": "{place} • {date} (UTC)",
        "en": "{place} • {date} (UTC)",
    },
    "note": {
        "ko": "포트폴리오 명함 페이지에 넣기 위한 위젯이에요. 조용하고, 시각적이고, 기억에 남아요.",
        "en": "This widget is meant to be embedded on a portfolio business-card page. "
        "It's quiet, visual, and memorable.",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
