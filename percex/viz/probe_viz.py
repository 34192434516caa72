"""
Plots of probe runs.

Joint target and encoder feedback on top, model output below, both over
tick index. Toggle ticks are marked on the feedback trace.
"""

from typing import Dict, Optional

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def plot_probe_log(
    log: Dict[str, np.ndarray],
    title: str = "Contact Probe",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Plot a run loaded with load_probe_log.

    Args:
        log: Column arrays (tick, target, feedback, toggled, output)
        title: Plot title
        save_path: If set, save figure

    Returns:
        Matplotlib Figure
    """
    ticks = log["tick"]
    toggled = log["toggled"]

    fig, (ax_pos, ax_out) = plt.subplots(2, 1, figsize=(12, 7), sharex=True)

    ax_pos.step(ticks, log["target"], "b-", where="post", linewidth=1, alpha=0.8, label="Target")
    ax_pos.plot(ticks, log["feedback"], "k.-", markersize=3, linewidth=0.8, alpha=0.7, label="Feedback")
    if toggled.any():
        ax_pos.scatter(ticks[toggled], log["feedback"][toggled], c="red", s=25, zorder=5, label="Toggle")
    ax_pos.set_ylabel("Joint position")
    ax_pos.legend(fontsize=8, loc="upper right")
    ax_pos.grid(True, alpha=0.3)

    ax_out.plot(ticks, log["output"], "g-", linewidth=1.2)
    ax_out.set_ylabel("Model output")
    ax_out.set_xlabel("Tick")
    ax_out.grid(True, alpha=0.3)

    fig.suptitle(title, fontsize=13)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
