"""
Flow Loader - parses exported flows and rewrites deprecated block types
"""
import logging
from typing import Any, Dict, Union

from ..models.flow import DeprecatedModuleType, Flow, Module, ModuleTarget, ModuleType

logger = logging.getLogger(__name__)

# Deprecated type -> (modern type, target to set if the block has none)
DEPRECATED_REPLACEMENTS: Dict[str, tuple] = {
    DeprecatedModuleType.STORE_CUSTOMER_INPUT.value: (ModuleType.STORE_USER_INPUT.value, None),
    DeprecatedModuleType.PLAY_AUDIO.value: (ModuleType.PLAY_PROMPT.value, None),
    DeprecatedModuleType.TRANSFER_TO_FLOW.value: (ModuleType.TRANSFER.value, ModuleTarget.FLOW.value),
}


def normalize_module(module: Module) -> Module:
    """Return the block rewritten as its modern equivalent; other blocks are returned as is"""
    replacement = DEPRECATED_REPLACEMENTS.get(module.type)
    if replacement is None:
        return module

    new_type, target = replacement
    update: Dict[str, Any] = {"type": new_type}
    if target is not None and not module.target:
        update["target"] = target

    logger.debug(f"Rewriting deprecated block {module.id} from {module.type} to {new_type}")
    return module.model_copy(update=update)


def normalize_flow(flow: Flow) -> Flow:
    """Rewrite every deprecated block in a flow"""
    return flow.model_copy(update={"modules": [normalize_module(m) for m in flow.modules]})


def parse_flow(data: Union[str, bytes, Dict[str, Any]]) -> Flow:
    """
    Parse an exported flow.

    Args:
        data: The export as JSON text/bytes or an already decoded dict

    Returns:
        The normalized Flow

    Raises:
        pydantic.ValidationError: If the export is not a flow
    """
    if isinstance(data, dict):
        flow = Flow.model_validate(data)
    else:
        flow = Flow.model_validate_json(data)
    return normalize_flow(flow)
