from __future__ import annotations

from seatdesigner.domain.models import Point, ViewState, clamp_scale


class ViewTransform:
    """
    Translation puis mise à l'échelle du canevas :
    ``écran = origine + pan + canevas * scale``.
    Le pan est exprimé en pixels écran et n'est pas affecté par l'échelle.
    """

    def __init__(self, pan: Point | None = None, scale: float = 1.0) -> None:
        self.pan = pan or Point()
        self._scale = clamp_scale(scale)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def zoom_percent(self) -> int:
        return round(self._scale * 100)

    def to_canvas(self, screen: Point, origin: Point) -> Point:
        return (screen - origin - self.pan) / self._scale

    def to_screen(self, canvas: Point, origin: Point) -> Point:
        return origin + self.pan + canvas * self._scale

    def zoom_at(self, screen: Point, origin: Point, delta_scale: float) -> float:
        """Zoome en gardant fixe le point du canevas situé sous ``screen``."""
        new_scale = clamp_scale(self._scale + delta_scale)
        if new_scale == self._scale:
            return new_scale
        local = screen - origin - self.pan
        self.pan = self.pan - local * (new_scale / self._scale - 1)
        self._scale = new_scale
        return new_scale

    def set_scale(self, value: float) -> float:
        # curseur de zoom : le pan reste inchangé
        self._scale = clamp_scale(value)
        return self._scale

    def center_on(self, target: Point, center_screen: Point, origin: Point | None = None) -> None:
        origin = origin or Point()
        self.pan = center_screen - origin - target * self._scale

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan = self.pan + Point(dx, dy)

    def pan_to(self, x: float, y: float) -> None:
        self.pan = Point(x, y)

    def reset(self) -> None:
        self.pan = Point()
        self._scale = 1.0

    def state(self) -> ViewState:
        return ViewState(pan=self.pan, scale=self._scale)

    def apply(self, state: ViewState) -> None:
        self.pan = state.pan
        self._scale = clamp_scale(state.scale)

    @classmethod
    def from_state(cls, state: ViewState) -> "ViewTransform":
        return cls(pan=state.pan, scale=state.scale)
