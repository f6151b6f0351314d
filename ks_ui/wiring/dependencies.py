from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from ks_common.logging import configure_logging
from ks_controller.adapters.process import ProcessRunner
from ks_controller.services import DoctorService
from ks_controller.stress_pipeline import Toolset
from ks_controller.ui_interfaces import UIAdapter
from ks_ui.console_adapter import RichUIAdapter


@dataclass
class UIContext:
    """Container for UI services and state, initialized lazily."""

    # Lazily initialized services
    _console: Optional[Console] = None
    _ui: Optional[UIAdapter] = None
    _runner: Optional[ProcessRunner] = None
    _doctor_service: Optional[DoctorService] = None
    _toolset: Optional[Toolset] = None

    @property
    def console(self) -> Console:
        if self._console is None:
            self._console = Console()
        return self._console

    @console.setter
    def console(self, value: Console):
        self._console = value

    @property
    def ui(self) -> UIAdapter:
        if self._ui is None:
            self._ui = RichUIAdapter(self.console)
        return self._ui

    @ui.setter
    def ui(self, value: UIAdapter):
        self._ui = value

    @property
    def runner(self) -> ProcessRunner:
        if self._runner is None:
            self._runner = ProcessRunner()
        return self._runner

    @runner.setter
    def runner(self, value: ProcessRunner):
        self._runner = value

    @property
    def doctor_service(self) -> DoctorService:
        if self._doctor_service is None:
            self._doctor_service = DoctorService(runner=self.runner)
        return self._doctor_service

    @doctor_service.setter
    def doctor_service(self, value: DoctorService):
        self._doctor_service = value

    @property
    def toolset(self) -> Toolset:
        if self._toolset is None:
            self._toolset = Toolset.default(self.ui, self.runner)
        return self._toolset

    @toolset.setter
    def toolset(self, value: Toolset):
        self._toolset = value


__all__ = [
    "UIContext",
    "configure_logging",
]
