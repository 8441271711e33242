"""Sample pipeline orchestrator.

Runs the sampler and then the station annotator. The annotator reads the
sampler's Parquet output, so it only starts once that file is written; any
error stops the run and already written artifacts stay on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging

import duckdb

from noaa_cdo.config import (
    GSN_ARTIFACT,
    OBSERVATIONS_TABLE,
    OUTPUT_DIR,
    SAMPLE_ARTIFACT,
    STATIONS_TABLE,
    SampleSettings,
)
from noaa_cdo.pipeline.annotator import AnnotateResult, annotate_stations
from noaa_cdo.pipeline.sampler import SampleResult, sample_observations

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    sample: SampleResult
    stations: AnnotateResult


def run_pipeline(
    conn: duckdb.DuckDBPyConnection,
    settings: SampleSettings | None = None,
    output_dir: str | Path = OUTPUT_DIR,
    observations: str | Path = OBSERVATIONS_TABLE,
    stations: str | Path = STATIONS_TABLE,
) -> PipelineResult:
    """Write the sample artifact, then the annotated GSN station artifact."""
    settings = settings or SampleSettings()
    output_dir = Path(output_dir)

    logger.info(
        "Sampling %d station(s) from %s (year >= %d, elements %s, seed %s)",
        settings.sample_size, observations, settings.year_threshold,
        ",".join(settings.elements), settings.seed,
    )
    sample = sample_observations(
        conn, settings, output_dir / SAMPLE_ARTIFACT, source=observations,
    )

    annotated = annotate_stations(
        conn, sample.path, output_dir / GSN_ARTIFACT, source=stations,
    )

    return PipelineResult(sample=sample, stations=annotated)
