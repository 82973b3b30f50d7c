"""
Arduino Project Builder — natural-language description to Arduino project.

Public API:
    from arduino_builder import RequestOrchestrator, ProjectGenerator
    from arduino_builder.state import Idle, Loading, Succeeded, Failed
    from arduino_builder.types import ArduinoProject, Component
    from arduino_builder.config import CONFIG
"""
from arduino_builder.config import CONFIG
from arduino_builder.generator import ProjectGenerator
from arduino_builder.orchestrator import RequestOrchestrator
from arduino_builder.types import ArduinoProject, Component

__version__ = "1.0.0"
__all__ = ["RequestOrchestrator", "ProjectGenerator", "ArduinoProject", "Component", "CONFIG"]
