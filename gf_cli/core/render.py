"""SVG rendering of chart descriptors."""

from __future__ import annotations

import io

from gf_cli.core.models import ChartDescriptor


class RenderError(RuntimeError):
    """Raised when a chart cannot be rendered."""


def render_svg(descriptor: ChartDescriptor, width: float = 12.0, height: float = 7.0) -> bytes:
    """Render the descriptor as a line chart and return the SVG bytes."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as exc:
        raise RenderError("matplotlib is required for rendering. Install with: pip install matplotlib") from exc

    fig, ax = plt.subplots(figsize=(width, height))
    try:
        ax.plot(descriptor.xs, descriptor.ys, linewidth=1.5)

        ax.set_xticks([tick.value for tick in descriptor.x_ticks])
        ax.set_xticklabels([tick.label for tick in descriptor.x_ticks])
        ax.set_yticks([tick.value for tick in descriptor.y_ticks])
        ax.set_yticklabels([tick.label for tick in descriptor.y_ticks])
        if descriptor.x_ticks:
            ax.set_xlim(descriptor.x_ticks[0].value, descriptor.x_ticks[-1].value)
        if descriptor.y_ticks:
            ax.set_ylim(descriptor.y_ticks[0].value, descriptor.y_ticks[-1].value)

        ax.set_xlabel(descriptor.x_name)
        ax.set_ylabel(descriptor.y_name)
        ax.grid(True, alpha=0.3)
        fig.tight_layout()

        buffer = io.BytesIO()
        fig.savefig(buffer, format="svg")
    except (ValueError, OSError) as exc:
        raise RenderError(f"Failed to render chart: {exc}") from exc
    finally:
        plt.close(fig)

    return buffer.getvalue()

