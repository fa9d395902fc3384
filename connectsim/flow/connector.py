"""
Call Connector - everything a running block needs from the call hosting it
"""
from typing import Any, Optional, Tuple

from ..core.config import Settings, settings as default_settings
from ..models.events import Event
from ..models.flow import SystemKey


class CallConnector:
    """
    Interface between block runners and the call they run in.

    The simulated call implements this; unit tests substitute a recording
    fake. Lookups return None when the key has never been set.
    """

    # Defaults for parameters a block leaves out
    settings: Settings = default_settings

    # ---- Caller I/O ----

    def send(self, text: str, ssml: bool = False) -> None:
        """Speak text (or SSML) to the caller without blocking"""
        raise NotImplementedError

    def receive(self, max_count: int, timeout: float, terminator: Optional[str]) -> Tuple[str, bool]:
        """
        Block until the caller enters max_count characters or the terminator.

        Returns:
            Tuple of (input, received_before_timeout)
        """
        raise NotImplementedError

    # ---- State ----

    def get_external(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_external(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def clear_external(self) -> None:
        raise NotImplementedError

    def get_contact_data(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_contact_data(self, key: str, value: str) -> None:
        raise NotImplementedError

    def get_system(self, key: SystemKey) -> Optional[str]:
        raise NotImplementedError

    def set_system(self, key: SystemKey, value: str) -> None:
        raise NotImplementedError

    # ---- Hooks and lookups ----

    def invoke_lambda(self, arn: str, parameters: str, timeout: float) -> Tuple[Optional[str], Optional[Exception]]:
        """
        Invoke the lambda registered for arn with a JSON object of parameters.

        Returns:
            Tuple of (output_json, business_error). Transport failures such
            as an unknown lambda are raised rather than returned.
        """
        raise NotImplementedError

    def get_flow_start(self, flow_name: str) -> Optional[str]:
        """ID of the first block of the named flow, or None if not loaded"""
        raise NotImplementedError

    def emit(self, event: Event) -> None:
        raise NotImplementedError

    def is_in_hours(self, name: str, is_queue: bool) -> bool:
        """Raises when the queue or hours of operation is unknown"""
        raise NotImplementedError

    def encrypt(self, plaintext: str, key_id: str, certificate: bytes) -> bytes:
        raise NotImplementedError
