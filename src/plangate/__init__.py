"""plangate - staged plan/approve/apply orchestrator for declarative infrastructure."""

from typing import Dict, Any, Optional
from .utils.logging import setup_logging, get_logger
from .utils.errors import PlanGateError
from .orchestrator import Orchestrator

__version__ = "0.1.0"

__all__ = ["plan", "Orchestrator", "PlanGateError"]

setup_logging()
logger = get_logger("plangate")


def plan(config_path: str, settings_path: Optional[str] = None, environment_path: Optional[str] = None) -> Dict[str, Any]:
    """Plan a configuration file and return the issued plan handle as JSON-ready data."""
    orchestrator = None
    try:
        logger.info(f"Planning configuration: {config_path}")
        orchestrator = Orchestrator.from_files(settings_path, environment_path)
        handle = orchestrator.plan(config_path)
        return handle.model_dump(mode="json")
    except PlanGateError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during planning: {e}", exc_info=True)
        raise PlanGateError(f"Planning failed: {e}") from e
    finally:
        if orchestrator is not None:
            orchestrator.close()
