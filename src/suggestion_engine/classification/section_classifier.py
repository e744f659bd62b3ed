"""Section classifier: intent distribution, actionability and suggested type."""

from __future__ import annotations

from suggestion_engine.classification.actionability import decide_actionability, is_plan_change_label
from suggestion_engine.classification.intent import classify_intent
from suggestion_engine.classification.model_blend import blend_intent
from suggestion_engine.classification.type_classifier import classify_type, compute_type_label, has_forced_update
from suggestion_engine.exceptions import ClassificationError
from suggestion_engine.models.domain import ClassifiedSection, Section
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.protocols.classifier_model import ClassifierModel

logger = get_logger("classification")

PLAN_CHANGE_OVERRIDE_CONFIDENCE = 0.3
PLAN_CHANGE_FALLBACK_CONFIDENCE = 0.2
NEW_WORKSTREAM_CONFIDENCE = 0.7
NEW_WORKSTREAM_MIN = 0.5


class SectionClassifier:
    def __init__(self, thresholds: ThresholdConfig, model: ClassifierModel | None = None) -> None:
        self.thresholds = thresholds
        self.model = model

    def classify(self, section: Section) -> ClassifiedSection:
        intent = classify_intent(section)
        if self.model is not None:
            try:
                model_scores, model_confidence = self.model.classify(section)
            except Exception as e:
                raise ClassificationError(
                    f"classifier model {self.model.name} failed on {section.section_id}"
                ) from e
            intent = blend_intent(intent, model_scores, model_confidence)

        plan_change = is_plan_change_label(intent)
        gate = decide_actionability(intent, section, self.thresholds)
        type_label = compute_type_label(intent)

        result = ClassifiedSection(
            section=section,
            intent=intent,
            is_actionable=gate.actionable,
            actionability_reason=gate.reason,
            actionable_signal=gate.actionable_signal,
            out_of_scope_signal=gate.out_of_scope_signal,
            type_label=type_label,
            out_of_scope=gate.out_of_scope,
        )

        if gate.overridden:
            result.actionability_reason = f"{gate.reason} (overridden for plan_change intent)"
            result.suggested_type = "project_update"
            result.type_confidence = PLAN_CHANGE_OVERRIDE_CONFIDENCE
            result.type_label = "project_update"
            return result

        if gate.actionable:
            typed = classify_type(section, intent)
            result.p_mutation = typed.p_mutation
            result.p_artifact = typed.p_artifact

            if typed.type == "non_actionable":
                if plan_change:
                    result.actionability_reason = f"{gate.reason} (type non_actionable overridden for plan_change)"
                    result.suggested_type = "project_update"
                    result.type_confidence = PLAN_CHANGE_OVERRIDE_CONFIDENCE
                    result.type_label = "project_update"
                    return result
                if intent.new_workstream > intent.plan_change and intent.new_workstream >= NEW_WORKSTREAM_MIN:
                    result.actionability_reason = f"{gate.reason} (type non_actionable overridden for new_workstream)"
                    result.suggested_type = "idea"
                    result.type_confidence = NEW_WORKSTREAM_CONFIDENCE
                    result.type_label = "idea"
                    return result
                result.is_actionable = False
                result.type_rejected = True
                result.actionability_reason = "type classification: non-actionable"
                return result

            suggested = typed.type
            if plan_change or has_forced_update(intent):
                suggested = "project_update"
            elif suggested == "project_update":
                # project_update only for plan_change intent or forced overrides
                suggested = "idea"
            result.suggested_type = suggested
            result.type_confidence = typed.confidence

        if plan_change and result.suggested_type is None:
            result.suggested_type = "project_update"
            result.type_confidence = PLAN_CHANGE_FALLBACK_CONFIDENCE

        logger.debug(
            "section_classified",
            section_id=section.section_id,
            intent_label=result.intent_label,
            actionable=result.is_actionable,
            suggested_type=result.suggested_type,
        )
        return result

    def classify_all(self, sections: list[Section]) -> list[ClassifiedSection]:
        return [self.classify(section) for section in sections]
