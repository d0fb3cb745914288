import logging
from typing import Callable

from xlsx_pdf_service.dto.conversion_outcome import ConversionOutcome, RejectionReason
from xlsx_pdf_service.utils.utils import get_process_memory_mb


class AdmissionGuard:
    """Sheds conversions while the process is above its resident memory ceiling.

    The decision uses a single point-in-time sample, there is no smoothing window.
    """

    def __init__(self, memory_limit_mb: int, log: logging.Logger,
                 memory_probe: Callable[[], float] = get_process_memory_mb) -> None:
        self.memory_limit_mb = memory_limit_mb
        self.log = log
        self._memory_probe = memory_probe

    @property
    def enabled(self) -> bool:
        return self.memory_limit_mb > 0

    def admit(self) -> ConversionOutcome | None:
        """Return a capacity error outcome when overloaded, None to admit."""
        if not self.enabled:
            return None

        memory_mb = self._memory_probe()
        if memory_mb >= self.memory_limit_mb:
            self.log.warning("rejecting conversion, memory %.1f MB >= limit %d MB",
                             memory_mb, self.memory_limit_mb)
            return ConversionOutcome.capacity_error(RejectionReason.OVERLOADED)

        return None
