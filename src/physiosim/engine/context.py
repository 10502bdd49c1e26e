"""Run context for simulation execution."""

from __future__ import annotations
import time
import uuid
from typing import Any, Dict, Optional

import structlog


class RunContext:
    """Context for one engine pass with bound logging and stage timing."""

    def __init__(
        self,
        run_id: Optional[str] = None,
        generation: int = 0,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.generation = generation

        # Set up logging
        if logger is None:
            self.logger = structlog.get_logger().bind(run_id=self.run_id)
        else:
            self.logger = logger.bind(run_id=self.run_id)

        self._start_time: Optional[float] = None
        self._stage_times: Dict[str, float] = {}
        self._reported_failures: set = set()

        # Runtime metadata
        self.metadata: Dict[str, Any] = {
            "run_id": self.run_id,
            "generation": generation,
        }

    def start_run(self) -> None:
        """Mark start of run execution."""
        self._start_time = time.perf_counter()
        self.logger.debug("Simulation started", generation=self.generation)

    def end_run(self) -> float:
        """Mark end of run execution and return total runtime.

        Returns:
            Total runtime in seconds
        """
        if self._start_time is None:
            return 0.0

        runtime = time.perf_counter() - self._start_time
        self.logger.debug("Simulation completed", runtime_s=runtime)
        return runtime

    def time_stage(self, stage_name: str):
        """Context manager for timing a stage.

        Args:
            stage_name: Name of the stage being timed

        Returns:
            Context manager that tracks stage execution time
        """
        return _StageTimer(self, stage_name)

    def report_failure(self, key: str, error: Exception) -> bool:
        """Log a per-signal failure the first time it happens.

        Returns:
            True when this is the first failure reported for ``key``
        """
        if key in self._reported_failures:
            return False
        self._reported_failures.add(key)
        self.logger.warning("Signal dynamics failed, using fallback", signal=key, error=str(error))
        return True

    @property
    def failed_keys(self) -> tuple:
        return tuple(sorted(self._reported_failures))

    def get_runtime_metadata(self) -> Dict[str, Any]:
        """Get runtime metadata for this execution.

        Returns:
            Dictionary with runtime information
        """
        metadata = self.metadata.copy()
        metadata.update({
            "stage_times": self._stage_times.copy(),
            "total_runtime_s": sum(self._stage_times.values()),
        })
        return metadata


class _StageTimer:
    """Context manager for timing stage execution."""

    def __init__(self, context: RunContext, stage_name: str):
        self.context = context
        self.stage_name = stage_name
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.context.logger.debug("Stage started", stage=self.stage_name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            runtime = time.perf_counter() - self.start_time
            self.context._stage_times[self.stage_name] = runtime

            if exc_type is None:
                self.context.logger.debug(
                    "Stage completed",
                    stage=self.stage_name,
                    runtime_s=runtime,
                )
            else:
                self.context.logger.error(
                    "Stage failed",
                    stage=self.stage_name,
                    runtime_s=runtime,
                    error=str(exc_val),
                )
