"""
Streamlit Web Interface for TeamForge Roster Analyzer
"""

import json
from pathlib import Path

import pandas as pd
import plotly.express as px
import streamlit as st

from analyzer import RosterAnalyzer, filter_box
from crit import CRIT_STAGE_PRESETS
from game_loader import GameParser
from roster_warnings import Severity, WarningContext, evaluate_warnings
from tag_effects import STAT_KEYS, TAG_KINDS, build_tag, resolve

SAMPLE_GAME = Path(__file__).parent / "data" / "sample_game.json"

# Page configuration
st.set_page_config(
    page_title="🧬 TeamForge Roster Analyzer",
    page_icon="🧬",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    [data-testid="stMetricValue"] {
        font-size: 2rem;
        font-weight: 700;
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
    }

    h3 {
        font-weight: 600;
        border-bottom: 2px solid rgba(102, 126, 234, 0.3);
        padding-bottom: 0.5rem;
        margin-top: 2rem;
    }
</style>
""", unsafe_allow_html=True)

# Initialize session state
if 'current_page' not in st.session_state:
    st.session_state.current_page = 'landing'
if 'game_text' not in st.session_state:
    st.session_state.game_text = ""


def go_to_landing():
    st.session_state.current_page = 'landing'
    st.session_state.game_text = ""


def _chart_layout(fig):
    fig.update_layout(
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        font=dict(size=12),
    )
    return fig


def box_dataframe(scores):
    """Scored box as a table."""
    rows = []
    for score in scores:
        p = score.potentials
        rows.append({
            "Dex #": score.dex_number,
            "Name": score.name,
            "Species": score.species_name,
            "Types": " / ".join(score.type_names),
            "Ability": score.ability_name or "",
            "Item": score.item_name or "",
            "Off (Phys)": round(p.offensive_physical, 1),
            "Off (Spec)": round(p.offensive_special, 1),
            "Def (Phys)": round(p.defensive_physical, 1),
            "Def (Spec)": round(p.defensive_special, 1),
            "Offense": round(p.offense, 1),
            "Defense": round(p.defense, 1),
            "Box Rank": round(p.box_rank, 1),
            "Crit x": round(p.crit_expected_mult, 3),
        })
    return pd.DataFrame(rows)


# Page routing
if st.session_state.current_page == 'landing':
    # ===== LANDING PAGE =====
    st.title("🧬 TeamForge Roster Analyzer")
    st.markdown("Rank every creature in your box and check how your team holds up against each type.")

    col1, col2 = st.columns([3, 2])

    with col1:
        st.markdown("### 📝 Paste Your Game JSON")
        game_text = st.text_area(
            "Game data",
            value=st.session_state.game_text,
            height=300,
            placeholder='{"name": "My Run", "types": [...], "chart": [...], "species": [...], "box": [...]}',
        )

        col_a, col_b = st.columns(2)
        with col_a:
            if st.button("📋 Use Sample Game", type="secondary"):
                st.session_state.game_text = SAMPLE_GAME.read_text(encoding="utf-8")
                st.rerun()
        with col_b:
            uploaded_file = st.file_uploader("Or upload a game file", type=["json"])
            if uploaded_file is not None:
                game_text = uploaded_file.getvalue().decode("utf-8")
                st.success(f"✅ Loaded game from: {uploaded_file.name}")

        if st.button("🔍 Analyze Roster", type="primary", disabled=not game_text.strip(), use_container_width=True):
            st.session_state.game_text = game_text
            st.session_state.current_page = 'analysis'
            st.rerun()

    with col2:
        st.markdown("### ✨ Features")
        st.markdown("""
        - **Box ranking** by offensive and defensive potential
        - **Tag effects** from species, abilities and held items
        - **Crit model** with per-generation stage tables
        - **Defense matrix** for all six team slots
        - **Team chart** of weaknesses, resists and immunities
        - **Tag builder** for writing valid tags
        """)

else:
    # ===== ANALYSIS PAGE =====
    col_nav, col_title = st.columns([1, 5])
    with col_nav:
        if st.button("🏠 Home", help="Return to landing page"):
            go_to_landing()
            st.rerun()

    try:
        game = GameParser().parse_text(st.session_state.game_text)
    except ValueError as e:
        st.error(f"Error loading game: {e}")
        st.stop()

    with col_title:
        st.title(f"🔍 {game.name}")

    # Sidebar settings
    st.sidebar.header("⚙️ Crit Settings")
    presets = list(CRIT_STAGE_PRESETS)
    current = game.settings.crit_stage_preset
    preset = st.sidebar.selectbox(
        "Crit stage preset",
        presets,
        index=presets.index(current) if current in presets else presets.index("gen7"),
    )
    crit_damage = st.sidebar.number_input(
        "Base crit damage multiplier",
        min_value=0.0,
        max_value=max(5.0, float(game.settings.crit_base_damage_mult)),
        value=float(game.settings.crit_base_damage_mult),
        step=0.25,
    )
    st.sidebar.header("🎒 Game Rules")
    disable_abilities = st.sidebar.checkbox("Disable abilities", value=game.settings.disable_abilities)
    disable_items = st.sidebar.checkbox("Disable held items", value=game.settings.disable_held_items)

    settings = game.settings.with_overrides(
        crit_stage_preset=preset,
        crit_base_damage_mult=crit_damage,
        disable_abilities=disable_abilities,
        disable_held_items=disable_items,
    )
    analyzer = RosterAnalyzer(game, settings)
    scores = analyzer.analyze_box()
    team_report = analyzer.analyze_team()

    tab_box, tab_team, tab_warn, tab_tags = st.tabs(["📦 Box", "🛡️ Team", "⚠️ Warnings", "🏷️ Tag Builder"])

    with tab_box:
        st.markdown("### 📊 Box Overview")
        m1, m2, m3 = st.columns(3)
        m1.metric("Box Entries", len(scores))
        m2.metric("Species", len(game.species))
        m3.metric("Top Rank", f"{scores[0].box_rank:.1f}" if scores else "-")

        f1, f2, f3 = st.columns(3)
        with f1:
            search = st.text_input("Search", "")
        with f2:
            type_options = {"Any": None}
            type_options.update({t.name: t.id for t in game.types})
            type_label = st.selectbox("Type", list(type_options))
        with f3:
            min_rank = st.number_input("Minimum rank", min_value=0.0, value=0.0, step=5.0)

        filtered = filter_box(scores, search=search, type_id=type_options[type_label], min_rank=min_rank or None)
        df = box_dataframe(filtered)

        if df.empty:
            st.info("No box entries match the filters")
        else:
            st.dataframe(df, hide_index=True, use_container_width=True)

            fig_scatter = px.scatter(
                df,
                x="Offense",
                y="Defense",
                size="Box Rank",
                color="Types",
                hover_name="Name",
                title="Offense vs Defense",
            )
            st.plotly_chart(_chart_layout(fig_scatter), use_container_width=True)

    with tab_team:
        st.markdown("### 🛡️ Defense Matrix")
        slot_labels = [
            f"{idx}. {slot.name}" if slot is not None else f"{idx}. (empty)"
            for idx, slot in enumerate(team_report.slots, start=1)
        ]
        matrix = pd.DataFrame(
            [list(row.multipliers) for row in team_report.defense_matrix],
            index=[row.attacking_type_name for row in team_report.defense_matrix],
            columns=slot_labels,
        )

        if team_report.members:
            fig_matrix = px.imshow(
                matrix,
                color_continuous_scale=["#2e7d32", "#f5f5f5", "#c62828"],
                zmin=0,
                zmax=2,
                text_auto=True,
                aspect="auto",
                labels=dict(x="Slot", y="Attacking Type", color="Multiplier"),
            )
            st.plotly_chart(_chart_layout(fig_matrix), use_container_width=True)
        else:
            st.info("Team is empty - add box ids to the game's team list")

        totals = pd.DataFrame([
            {"Type": row.attacking_type_name, "Weak": row.total_weak, "Resist": row.total_resist}
            for row in team_report.defense_matrix
        ])
        st.dataframe(totals, hide_index=True, use_container_width=True)

        st.markdown("### 📊 Team Chart")
        chart_df = pd.DataFrame([
            {"Type": row.attacking_type_name, "Weak": row.weak, "Resist": row.resist, "Immune": row.immune}
            for row in team_report.team_chart
        ])
        if not chart_df.empty:
            fig_chart = px.bar(
                chart_df.melt(id_vars="Type", var_name="Bucket", value_name="Members"),
                x="Type",
                y="Members",
                color="Bucket",
                barmode="group",
                color_discrete_map={"Weak": "#c62828", "Resist": "#2e7d32", "Immune": "#9e9e9e"},
            )
            st.plotly_chart(_chart_layout(fig_chart), use_container_width=True)

    with tab_warn:
        report = evaluate_warnings(WarningContext(settings=settings, box=scores, team=team_report))
        if not report.items:
            st.success("✅ No warnings detected - roster looks clean!")
        for severity in (Severity.HIGH, Severity.WARN, Severity.INFO):
            items = report.by_severity().get(severity, [])
            if not items:
                continue
            with st.expander(f"{severity.value.upper()} ({len(items)})", expanded=severity != Severity.INFO):
                for w in items:
                    show = st.error if severity == Severity.HIGH else st.warning if severity == Severity.WARN else st.info
                    show(f"**{w.title}**: {w.detail}")
                    if w.suggestion:
                        st.caption(f"💡 {w.suggestion}")

    with tab_tags:
        st.markdown("### 🏷️ Tag Builder")
        kind_labels = {k.label: k for k in TAG_KINDS}
        kind = kind_labels[st.selectbox("Tag kind", list(kind_labels))]
        st.caption(f"Pattern: `{kind.pattern}`")

        stat = type_name = species = value = None
        if "stat" in kind.needs:
            stat = st.selectbox("Stat", list(STAT_KEYS))
        if "type_name" in kind.needs:
            type_name = st.selectbox("Type", [t.name for t in game.types])
        if "species" in kind.needs:
            species = st.selectbox("Species", sorted(s.name for s in game.species.values()))
        if "value" in kind.needs:
            value = st.text_input("Value", "1.2")

        tag = build_tag(kind.id, stat=stat, type_name=type_name, species=species, value=value)
        if tag is None:
            st.warning("Fill in every part to build the tag")
        else:
            st.code(tag)
            bundle = resolve([tag])
            if bundle.ignored:
                st.error("This tag would be ignored by the scorer")
            else:
                st.success("✅ Tag is recognized")
            st.code(json.dumps([tag]), language="json")
