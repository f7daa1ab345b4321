import json
from dataclasses import asdict, dataclass


@dataclass
class JobSnapshot:
    name: str
    pa: float
    target_ra_hours: float
    target_dec_deg: float
    state: str
    stage: str
    sequence_count: int
    completed_count: int
    min_altitude: float | None
    min_moon_separation: float | None
    estimated_time: int
    culmination_offset: int
    priority: int
    lead_time: int
    repeats_required: int
    repeats_remaining: int
    in_sequence_focus: bool
    score: int


def snapshot_job(job) -> JobSnapshot:
    return JobSnapshot(
        name=job.name,
        pa=job.position_angle,
        target_ra_hours=job.ra0_hours,
        target_dec_deg=job.dec0_deg,
        state=job.state.name,
        stage=job.stage.name,
        sequence_count=job.sequence_count,
        completed_count=job.completed_count,
        min_altitude=job.min_altitude,
        min_moon_separation=job.min_moon_separation,
        estimated_time=job.estimated_time,
        culmination_offset=job.culmination_offset,
        priority=job.priority,
        lead_time=job.lead_time,
        repeats_required=job.repeats_required,
        repeats_remaining=job.repeats_remaining,
        in_sequence_focus=job.in_sequence_focus,
        score=job.score,
    )


def format_json(snapshot: JobSnapshot) -> str:
    return json.dumps(asdict(snapshot), indent=2, default=str)
