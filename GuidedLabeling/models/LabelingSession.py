from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from GuidedLabeling.models.Annotation import Category, ImageAnnotations
from GuidedLabeling.models.CategoryRegistry import CategoryRegistry
from GuidedLabeling.models.CertaintyRanker import SuperpixelRecord
from GuidedLabeling.models.Hotkeys import HotkeyMap
from GuidedLabeling.models.WorkflowStep import WorkflowStage


@dataclass
class LabelingSession:
    """Everything known about one labeling folder.

    Owned by the :class:`WorkflowController`; phases receive it and return an
    updated copy of the parts they change.
    """

    folder: Path
    folder_id: str
    registry: CategoryRegistry
    config: dict = field(default_factory=dict)
    hotkeys: HotkeyMap = field(default_factory=HotkeyMap)
    image_names: Dict[str, str] = field(default_factory=dict)
    annotations_by_image: Dict[str, ImageAnnotations] = field(default_factory=dict)
    sorted_superpixels: List[SuperpixelRecord] = field(default_factory=list)
    epoch: int = -1
    stage: WorkflowStage = WorkflowStage.SUPERPIXEL_SEGMENTATION
    last_run_job_id: Optional[int] = None
    average_certainty: Optional[float] = None
    certainty_metrics: Optional[List[str]] = None

    @property
    def default_category(self) -> Category:
        return self.registry.default_category
