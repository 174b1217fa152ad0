"""
Simulated Target Session.

In-memory stand-in for the browser page session, for testing and demos.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from core.application.interfaces import ITargetSessionPort
from core.domain.entities import TargetInfo


logger = logging.getLogger(__name__)


class SimulatedTargetSession(ITargetSessionPort):
    """
    Keeps targets in a dict and records navigation.

    ``load_seconds`` is how long a page takes to finish loading after
    ``navigate``; ``wait_for_load`` honours its timeout.
    """

    def __init__(self, load_seconds: float = 0.0):
        self.targets: Dict[str, TargetInfo] = {}
        self.navigations: List[Tuple[str, str]] = []
        self.load_seconds = load_seconds
        self._loads: Dict[str, asyncio.Event] = {}

    def open(self, target_id: str, url: str, loading: bool = False) -> TargetInfo:
        target = TargetInfo(target_id=target_id, url=url, loading=loading)
        self.targets[target_id] = target
        event = asyncio.Event()
        if not loading:
            event.set()
        self._loads[target_id] = event
        return target

    def close(self, target_id: str) -> None:
        self.targets.pop(target_id, None)
        self._loads.pop(target_id, None)

    def finish_loading(self, target_id: str) -> None:
        target = self.targets.get(target_id)
        if target is not None:
            target.loading = False
            self._loads[target_id].set()

    async def get(self, target_id: str) -> Optional[TargetInfo]:
        target = self.targets.get(target_id)
        if target is None:
            return None
        return TargetInfo(target_id=target.target_id, url=target.url, loading=target.loading)

    async def navigate(self, target_id: str, url: str) -> None:
        target = self.targets.get(target_id)
        if target is None:
            raise ConnectionError(f"Target {target_id} is gone")

        self.navigations.append((target_id, url))
        target.url = url
        logger.debug(f"Target {target_id} navigating to {url}")

        if self.load_seconds > 0:
            target.loading = True
            self._loads[target_id].clear()
            asyncio.get_running_loop().call_later(
                self.load_seconds, self.finish_loading, target_id
            )

    async def wait_for_load(self, target_id: str, timeout: float) -> None:
        event = self._loads.get(target_id)
        if event is None:
            raise ConnectionError(f"Target {target_id} is gone")
        await asyncio.wait_for(event.wait(), timeout=timeout)
