"""
Alignment Inspector demo run

Drives an inspector through a synthetic alignment loop: a reading cloud is
shifted towards a reference cloud over a few iterations while statistics are
recorded and, for the VTKFileInspector, every iteration is exported.

Environment Variables:
    INSPECTOR_KIND: NullInspector, PerformanceInspector or VTKFileInspector
                    (default: PerformanceInspector)
    INSPECTOR_BASE_FILE_NAME: Prefix of the VTK files (default: point-matcher-output)
    INSPECTOR_DUMP_PERF_ON_EXIT: Print histogram reports on exit (default: false)
    INSPECTOR_DUMP_ITERATION_INFO: Write <base>-iterationInfo.csv (default: false)
    INSPECTOR_HISTOGRAM_BIN_COUNT: Bins of every histogram (default: 16)
    INSPECTOR_STATS_FILE_PREFIX: Prefix of the raw-sample files (default: disabled)
    INSPECTOR_LOG_FILE: Also log to this rotating file (default: disabled)
    INSPECTOR_LOG_LEVEL: Root logger level (default: INFO)

CLI Usage:
    python main.py

    # Export every iteration and print statistics
    INSPECTOR_KIND=VTKFileInspector INSPECTOR_DUMP_PERF_ON_EXIT=true python main.py
"""

import time
from types import SimpleNamespace

import numpy as np

from align_inspector.core.config import settings
from align_inspector.core.logging_config import get_logger
from align_inspector.services import create_inspector
from align_inspector.services.export import DataPoints, Matches
from align_inspector.services.metrics import timed

logger = get_logger("main")

ITERATIONS = 5


def run_demo() -> None:
    rng = np.random.default_rng(0)
    reference = DataPoints(rng.random((200, 3)))
    reference.add_descriptor("densities", rng.random(200))
    offset = np.array([0.5, -0.2, 0.1])

    with create_inspector(settings.INSPECTOR_KIND) as inspector:
        inspector.init()
        inspector.dump_data_points(reference, "reference")
        with timed(inspector.stats.stat_convergence_duration):
            for iteration in range(ITERATIONS):
                t0 = time.monotonic()
                shift = offset * (1.0 - (iteration + 1) / ITERATIONS)
                reading = DataPoints(reference.features[::2] + shift)
                matches = Matches(
                    ids=np.arange(0, 200, 2).reshape(-1, 1),
                    dists=np.full((100, 1), np.linalg.norm(shift)),
                )
                weights = np.ones((100, 1))
                transform = np.eye(4)
                transform[:3, 3] = -shift
                checker = SimpleNamespace(
                    value_names=["iteration"], limit_names=["maxIterationCount"],
                    values=[iteration], limits=[ITERATIONS],
                )

                inspector.stats.stat_point_count_reading(reading.point_count)
                inspector.stats.stat_overlap_ratio(float(weights.mean()))
                inspector.dump_iteration(iteration, transform, reference, reading, matches,
                                         weights, None, [checker])
                inspector.stats.stat_key_frame_duration(time.monotonic() - t0)
        inspector.stats.stat_iterations_count(ITERATIONS)
        inspector.finish(ITERATIONS - 1)

    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} demo finished")


if __name__ == "__main__":
    print(f"Starting {settings.PROJECT_NAME} demo with {settings.INSPECTOR_KIND}")
    run_demo()
