"""Errors raised by the Tiled map renderer."""


class RenderError(Exception):
    """Base class for rendering errors."""


class UnsupportedOrientationError(RenderError, ValueError):
    """The map orientation has no rendering engine."""

    def __init__(self, orientation: str):
        self.orientation = orientation
        super().__init__(f"tiled/render: unsupported orientation: {orientation!r}")


class UnsupportedRenderOrderError(RenderError, ValueError):
    """The map render order is not right-down."""

    def __init__(self, render_order: str):
        self.render_order = render_order
        super().__init__(f"tiled/render: unsupported render order: {render_order!r}")
