from __future__ import annotations

import base64
from dataclasses import dataclass
from functools import lru_cache
import html
import logging
from pathlib import Path
import sys
from typing import Sequence

import streamlit as st

try:
    from tally.errors import VoteSheetError
except ModuleNotFoundError:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from tally.errors import VoteSheetError

from tally.log import configure_logging
from tally.settings import Settings, load_settings
from tally.sheet_cache import VoteSheetCache
from tally.vote_models import MemberType, MemberVote, VoteType
from tally.vote_tally import (
    ChamberFilter,
    VoteCounts,
    VoteTally,
    filter_by_chamber,
    load_tally,
    search_by_name,
    votes_to_target,
)


TITLE_LINE = "เช็คคะแนนเสียงสมาชิกรัฐสภา"
SUBTITLE_LINE = "ส่งพิธาเป็นนายกรัฐมนตรี"

CHAMBER_LABELS = {
    MemberType.UPPER_HOUSE: "สมาชิกวุฒิสภา",
    MemberType.LOWER_HOUSE: "ว่าที่สมาชิกผู้แทนราษฎร",
}
SHOW_OPTION_LABELS: dict[str, str] = {
    "all": "ทั้งหมด",
    MemberType.UPPER_HOUSE.value: "แสดงเฉพาะ ส.ว.",
    MemberType.LOWER_HOUSE.value: "แสดงเฉพาะ ส.ส.",
}

YES_COLOR = "#165902"
UNDECIDED_COLOR = "#827762"
NO_COLOR = "#8e0d04"
GRID_TOTAL_COLUMNS = 18

logger = logging.getLogger("server.app")


@dataclass(frozen=True)
class VoteGroup:
    vote_type: VoteType
    title: str
    background: str
    columns: int


# Lean buckets count toward the bar but get no grid of their own.
VOTE_GROUPS: tuple[VoteGroup, ...] = (
    VoteGroup(
        VoteType.STRONG_YES,
        "โหวตเห็นด้วย",
        "linear-gradient(39deg, rgba(6,36,0,1) 0%, rgba(72,119,67,1) 35%, rgba(0,255,87,1) 100%)",
        7,
    ),
    VoteGroup(
        VoteType.UNDECIDED,
        "ยังไม่ทราบ / ไม่ชัดเจน",
        "linear-gradient(39deg, rgba(46,61,46,1) 0%, rgba(83,79,79,1) 49%, rgba(64,49,49,1) 100%)",
        7,
    ),
    VoteGroup(
        VoteType.STRONG_NO,
        "ไม่โหวตเห็นด้วย",
        "linear-gradient(39deg, rgb(71, 62, 59) 0%, rgb(201, 59, 45) 30%, rgb(157 45 10) 100%)",
        4,
    ),
)


def inject_css() -> None:
    st.markdown(
        """
        <style>
          .stApp {
            background: #242424;
            color: rgba(255, 255, 255, 0.87);
          }
          .main .block-container {
            max-width: 1480px;
            padding-top: 1.5rem;
            text-align: center;
          }
          .tally-title {
            font-weight: 900;
            line-height: 1;
            margin: 0;
            font-size: clamp(2rem, 5vw, 4.2rem);
          }
          .tally-title.big {
            font-size: clamp(2rem, 6vw, 5rem);
          }
          .tally-bar {
            display: flex;
            flex-direction: row;
            width: 100%;
            margin-top: 2rem;
          }
          .tally-bar > div {
            height: 50px;
            display: flex;
            align-items: center;
            padding-left: 0.75rem;
            font-weight: 900;
            font-size: 1.1rem;
            white-space: nowrap;
            overflow: hidden;
            color: #ffffff;
          }
          .vote-groups {
            display: flex;
            flex-direction: row;
            margin-top: 2rem;
          }
          .vote-container {
            display: flex;
            flex-direction: column;
            gap: 0.5rem;
            padding: 0.5rem;
          }
          .vote-container h3 {
            width: 100%;
            border-radius: 6px;
            padding: 1rem 0;
            margin: 0;
            background: rgba(0, 0, 0, 0.5);
            font-weight: 900;
            color: #ffffff;
          }
          .vote-grid {
            display: grid;
            gap: 0.5rem;
          }
          .vote-grid a {
            display: block;
          }
          .vote-avatar {
            border-radius: 9999px;
          }
          .vote-avatar img {
            width: 100%;
            aspect-ratio: 1 / 1;
            object-fit: contain;
            object-position: top;
            border-radius: 9999px;
            border: 1px solid #ffffff;
          }
          @media (max-width: 768px) {
            .vote-groups {
              flex-direction: column;
            }
            .vote-container {
              width: 100% !important;
            }
          }
          .credits a {
            color: #646cff;
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


@lru_cache(maxsize=2048)
def _image_data_url(path: str, mtime_ns: int) -> str:
    del mtime_ns
    encoded = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def image_src(member_id: str, settings: Settings) -> str:
    """Inline the local avatar when present, else point at the hosted copy."""
    image_path = settings.images_dir / f"{member_id}.png"
    if image_path.is_file():
        return _image_data_url(str(image_path), image_path.stat().st_mtime_ns)
    return f"{settings.images_base_url}/{member_id}.png"


def tooltip_text(vote: MemberVote) -> str:
    lines = [vote.name, CHAMBER_LABELS[vote.member_type]]
    if vote.party_name:
        lines.append(vote.party_name)
    return "\n".join(lines)


def member_tile_html(vote: MemberVote, settings: Settings) -> str:
    background = f"background-color: {html.escape(vote.color)};" if vote.color else ""
    alt = f"{vote.name} ({vote.party_name})" if vote.party_name else vote.name
    return (
        f'<a href="{html.escape(vote.reference)}" target="_blank" rel="noopener" '
        f'title="{html.escape(tooltip_text(vote))}">'
        f'<div class="vote-avatar" style="{background}">'
        f'<img src="{html.escape(image_src(vote.id, settings))}" alt="{html.escape(alt)}"/>'
        "</div></a>"
    )


def target_label(counts: VoteCounts, target: int) -> str:
    missing = votes_to_target(counts, target)
    if missing:
        return f"(ยังขาดอีก {missing} เสียง)"
    return f"(เกินเป้า {target}!)"


def vote_bar_html(counts: VoteCounts, target: int) -> str:
    segments = (
        (YES_COLOR, counts.yes_percent, f"{counts.yes} {target_label(counts, target)}"),
        (UNDECIDED_COLOR, counts.undecided_percent, str(counts.undecided)),
        (NO_COLOR, counts.no_percent, str(counts.no)),
    )
    parts = [
        f'<div style="width: {width:.4f}%; background: {color};">{html.escape(label)}</div>'
        for color, width, label in segments
    ]
    return f'<div class="tally-bar">{"".join(parts)}</div>'


def vote_container_html(group: VoteGroup, votes: Sequence[MemberVote], settings: Settings) -> str:
    tiles = "".join(member_tile_html(vote, settings) for vote in votes)
    return (
        f'<div class="vote-container" style="background: {group.background}; '
        f'width: calc(100% * {group.columns} / {GRID_TOTAL_COLUMNS});">'
        f"<h3>{html.escape(group.title)}</h3>"
        f'<div class="vote-grid" style="grid-template-columns: repeat({group.columns}, minmax(0, 1fr));">'
        f"{tiles}</div></div>"
    )


def visible_votes(tally: VoteTally, vote_type: VoteType, show: ChamberFilter, query: str) -> list[MemberVote]:
    return search_by_name(filter_by_chamber(tally.buckets[vote_type], show), query)


def vote_groups_html(tally: VoteTally, settings: Settings, show: ChamberFilter, query: str = "") -> str:
    containers = "".join(
        vote_container_html(group, visible_votes(tally, group.vote_type, show, query), settings)
        for group in VOTE_GROUPS
    )
    return f'<div class="vote-groups">{containers}</div>'


def credits_html() -> str:
    return """
        <div class="credits">
          <p style="margin-top: 1rem; font-weight: 900;">
            by <a rel="noopener" href="https://twitter.com/PanJ" target="_blank">PanJ</a>
          </p>
          <p>
            Got an updated data?
            <a rel="noopener" href="https://github.com/PanJ/road-to-376" target="_blank">Submit on GitHub</a>
          </p>
          <p style="font-size: 0.875rem;">
            Thanks for the images from
            <a rel="noopener" href="https://wevis.info/" target="_blank">WeVis</a>
            and
            <a rel="noopener" href="https://election2566.thestandard.co/" target="_blank">THE STANDARD</a>
          </p>
        </div>
    """


@st.cache_resource(show_spinner=False)
def get_sheet_cache(quoted: bool, timeout: float) -> VoteSheetCache:
    return VoteSheetCache(lambda key: load_tally(key, quoted=quoted, timeout=timeout))


def load_dashboard_tally(cache: VoteSheetCache, key: str, reload: bool = False) -> VoteTally | None:
    try:
        return cache.refresh(key) if reload else cache.get(key)
    except VoteSheetError as exc:
        logger.error("Could not load vote sheet: %s", exc)
        previous = cache.last_good(key)
        if previous is None:
            st.error(f"Could not load the vote sheet. {exc}")
            return None
        st.warning(f"Showing the last loaded data. Reload failed: {exc}")
        return previous


def render_dashboard(settings: Settings) -> None:
    inject_css()
    st.markdown(
        f'<h1 class="tally-title">{html.escape(TITLE_LINE)}</h1>'
        f'<h1 class="tally-title big">{html.escape(SUBTITLE_LINE)}</h1>',
        unsafe_allow_html=True,
    )

    cache = get_sheet_cache(settings.quoted_csv, settings.fetch_timeout)
    reload_clicked = st.button("Reload data", key="vote_reload")
    with st.spinner("Loading votes..."):
        tally = load_dashboard_tally(cache, settings.sheet_key, reload=reload_clicked)
    if tally is None:
        return

    st.markdown(vote_bar_html(tally.counts, settings.vote_target), unsafe_allow_html=True)

    filter_col, search_col = st.columns([2, 1])
    with filter_col:
        show_option = st.radio(
            "Show",
            list(SHOW_OPTION_LABELS),
            format_func=SHOW_OPTION_LABELS.get,
            horizontal=True,
            label_visibility="collapsed",
            key="vote_show_option",
        )
    with search_col:
        query = st.text_input(
            "Search",
            "",
            placeholder="ค้นหาชื่อ / พรรค",
            label_visibility="collapsed",
            key="vote_search",
        )

    show: ChamberFilter = "all" if show_option == "all" else MemberType(show_option)
    st.markdown(vote_groups_html(tally, settings, show, query), unsafe_allow_html=True)
    st.markdown(credits_html(), unsafe_allow_html=True)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    st.set_page_config(page_title="Road to 376", page_icon="🗳️", layout="wide")
    render_dashboard(settings)


if __name__ == "__main__":
    main()
