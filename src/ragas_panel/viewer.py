"""
ragas-panel Result Viewer

Minimal Streamlit dashboard for viewing panel scores.
Displays aggregated scores per sample, per-model scores and unavailable scores.

Usage:
    pip install -e ".[viewer]"
    streamlit run src/ragas_panel/viewer.py
    streamlit run src/ragas_panel/viewer.py -- --results-dir results

Requires the package to be installed (e.g. via ``pip install -e .``).
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ragas_panel.use_cases.evaluation import model_scores_frame

# -- Colors --
MODEL_COLORS = [
    "#1a73e8", "#e8710a", "#34a853", "#ea4335", "#9334e6",
    "#f538a0", "#00897b", "#6d4c41", "#546e7a", "#d500f9",
]


def _short_model_name(name: str) -> str:
    """Shorten model name for display."""
    parts = name.split("/")
    return parts[-1] if len(parts) > 1 else name


def _find_result_pairs(results_dir: Path) -> list[dict]:
    """Find matching scores / summary CSV pairs in results_dir."""
    pairs = []
    for scores_path in sorted(results_dir.glob("scores_*.csv"), reverse=True):
        run_id = scores_path.stem.replace("scores_", "")
        summary_path = results_dir / f"summary_{run_id}.csv"
        pairs.append({
            "run_id": run_id,
            "scores_path": scores_path,
            "summary_path": summary_path if summary_path.exists() else None,
        })
    return pairs


def _load_data(pair: dict) -> tuple[pd.DataFrame, pd.DataFrame | None]:
    """Load scores and summary DataFrames from a result pair."""
    scores_df = pd.read_csv(pair["scores_path"], dtype={"sample_id": str})
    summary_df = pd.read_csv(pair["summary_path"]) if pair["summary_path"] else None
    return scores_df, summary_df


def _render_sample_scores(scores_df: pd.DataFrame, metric: str) -> None:
    """Render aggregated and per-model scores per sample for one metric."""
    st.header(f"Scores: {metric}")

    metric_df = scores_df[scores_df["metric_name"] == metric]
    per_model = model_scores_frame(metric_df)

    fig = go.Figure()
    for i, model in enumerate(sorted(per_model["model_name"].unique())):
        color = MODEL_COLORS[i % len(MODEL_COLORS)]
        model_df = per_model[per_model["model_name"] == model]
        fig.add_trace(go.Bar(
            x=model_df["sample_id"],
            y=model_df["score"],
            name=_short_model_name(model),
            marker_color=color,
        ))

    available = metric_df.dropna(subset=["score"])
    fig.add_trace(go.Scatter(
        x=available["sample_id"].astype(str),
        y=available["score"],
        mode="markers",
        name="Aggregated",
        marker=dict(color="#202124", size=12, symbol="diamond"),
    ))

    fig.update_layout(
        barmode="group",
        xaxis_title="Sample",
        yaxis_title="Score",
        yaxis_range=[0, 1.05],
        legend_title="Model",
        template="plotly_white",
        height=450,
    )
    st.plotly_chart(fig, use_container_width=True)


def _render_unavailable(scores_df: pd.DataFrame) -> None:
    """Render scores that could not be computed."""
    st.header("Unavailable Scores")

    failed = scores_df[scores_df["score"].isna()]
    if failed.empty:
        st.success("Every sample was scored by every metric.")
        return

    st.dataframe(
        failed[["sample_id", "metric_name", "error"]].rename(
            columns={"sample_id": "Sample", "metric_name": "Metric", "error": "Error"}
        ),
        use_container_width=True,
        hide_index=True,
    )


def _render_exclusions(scores_df: pd.DataFrame) -> None:
    """Render how often each model was excluded from a score."""
    excluded = scores_df["excluded_models"].dropna().astype(str)
    counts = (
        excluded[excluded != ""].str.split(",").explode().value_counts()
        if not excluded.empty else pd.Series(dtype=int)
    )
    if counts.empty:
        return

    st.header("Model Exclusions")
    st.caption("Number of scores each model was excluded from after failing a step.")
    st.dataframe(
        counts.rename_axis("Model").reset_index(name="Exclusions"),
        use_container_width=True,
        hide_index=True,
    )


def _render_metrics_table(summary_df: pd.DataFrame) -> None:
    """Render a summary metrics table."""
    st.header("Metrics Summary")
    styled = summary_df.rename(columns={
        "metric_name": "Metric",
        "samples": "Samples",
        "available": "Available",
        "availability": "Availability",
        "mean_score": "Mean",
        "min_score": "Min",
        "max_score": "Max",
    })
    st.dataframe(styled, use_container_width=True, hide_index=True)


def main() -> None:
    # Parse --results-dir from Streamlit args (after --)
    parser = argparse.ArgumentParser()
    parser.add_argument("--results-dir", default="results")
    args, _ = parser.parse_known_args()

    results_dir = Path(args.results_dir)

    st.set_page_config(page_title="ragas-panel", layout="wide")
    st.title("ragas-panel Results")

    run_hint = "Run an evaluation first:\n```\npython -m ragas_panel.runner --samples samples/demo.json\n```"
    if not results_dir.exists():
        st.error(f"Results directory not found: `{results_dir}`")
        st.info(run_hint)
        return

    pairs = _find_result_pairs(results_dir)
    if not pairs:
        st.warning(f"No result files found in `{results_dir}/`")
        st.info(run_hint)
        return

    # Run selector
    run_ids = [p["run_id"] for p in pairs]
    selected_run_id = st.sidebar.selectbox("Run", run_ids, index=0)
    selected_pair = next(p for p in pairs if p["run_id"] == selected_run_id)

    scores_df, summary_df = _load_data(selected_pair)

    metrics = list(scores_df["metric_name"].unique())
    selected_metric = st.sidebar.selectbox("Metric", metrics, index=0)

    # Sidebar info
    st.sidebar.markdown("---")
    st.sidebar.markdown(f"**Samples**: {scores_df['sample_id'].nunique()}")
    st.sidebar.markdown(f"**Metrics**: {len(metrics)}")
    st.sidebar.markdown(f"**Scores**: {len(scores_df)} rows")

    # Render sections
    if summary_df is not None:
        _render_metrics_table(summary_df)
    _render_sample_scores(scores_df, selected_metric)
    _render_unavailable(scores_df)
    _render_exclusions(scores_df)


if __name__ == "__main__":
    main()
