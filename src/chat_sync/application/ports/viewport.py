from __future__ import annotations

from typing import Protocol


class Viewport(Protocol):
    """Scrollable message list as seen by the controller.

    Heights are in pixels; ``scroll_top`` is measured from the top of the list.
    """

    @property
    def scroll_top(self) -> float: ...

    @property
    def scroll_height(self) -> float: ...

    @property
    def client_height(self) -> float: ...

    async def next_frame(self) -> None:
        """Resolve once the view has laid out the latest state."""
        ...

    def scroll_to(self, top: float) -> None: ...

    def scroll_to_bottom(self, *, smooth: bool = False) -> None: ...
