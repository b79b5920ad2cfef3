"""tap-lens: Turn bar menu photos into reviewable beer candidates."""

from tap_lens.core import parse_menu, scan_menu
from tap_lens.pipeline import MenuPipeline, PipelineConfig
from tap_lens.schema import BarContext, BeerInsertPayload, CandidateBeer, MenuScanResult

__version__ = "0.1.0"

__all__ = [
    "scan_menu",
    "parse_menu",
    "MenuPipeline",
    "PipelineConfig",
    "BarContext",
    "BeerInsertPayload",
    "CandidateBeer",
    "MenuScanResult",
    "__version__",
]
