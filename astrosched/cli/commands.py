import datetime
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from astrosched.config import load_config
from astrosched.errors import AstroschedError
from astrosched.scheduler import SchedulerJob, build_context
from astrosched.scheduler.types import ObserverLocation


def _json_envelope(command: str, ok: bool, data=None, error=None) -> dict:
    return {
        "ok": ok,
        "command": command,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "data": data,
        "error": error,
    }


def _init_logging(level: str | None) -> None:
    if not level:
        return
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level, logging.INFO))


def _handle_error(command: str, args, exc: Exception) -> int:
    if args is not None and getattr(args, "json", False):
        payload = _json_envelope(
            command=command,
            ok=False,
            data=None,
            error={
                "code": type(exc).__name__,
                "message": str(exc),
                "details": None,
            },
        )
        print(json.dumps(payload, indent=2))
    else:
        print(str(exc), file=sys.stderr)
    return 2


def _config_path_from_args(args) -> Path | None:
    if args is None:
        return None
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _parse_datetime_arg(value: str | None) -> datetime.datetime | None:
    # Naive values are local time at the site
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(value)


def _parse_location_args(args, config) -> ObserverLocation | None:
    lat = getattr(args, "latitude_deg", None)
    lon = getattr(args, "longitude_deg", None)
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise ValueError(
            "Both latitude and longitude are required when specifying location"
        )
    return ObserverLocation(
        latitude_deg=lat,
        longitude_deg=lon,
        timezone=getattr(args, "timezone", None) or config.site_timezone,
    )


def _iso(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _build_job(args, context) -> SchedulerJob:
    job = SchedulerJob(context, name=args.name)
    job.set_target_coords(args.ra_hours, args.dec_deg)
    job.min_altitude = args.min_altitude
    job.min_moon_separation = args.min_moon_separation
    job.enforce_twilight = args.twilight
    job.enforce_artificial_horizon = args.horizon
    return job


def run_evaluate(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        context = build_context(config, location=_parse_location_args(args, config))
        when = context.location.to_local(_parse_datetime_arg(args.at))
        job = _build_job(args, context)

        start = job.get_next_possible_start_time(when)
        end, end_reason = job.get_next_end_time(start or when)
        altitude_score, altitude = job.altitude_score(when)
        moon_score = job.moon_separation_score(when)
        job.score = altitude_score + moon_score
        data = {
            "at": _iso(when),
            "altitude_deg": altitude,
            "altitude_score": altitude_score,
            "moon_separation_score": moon_score,
            "next_start": _iso(start),
            "next_end": _iso(end),
            "end_reason": end_reason,
            "culmination": _iso(job.culmination_time(when)),
            "job": asdict(job.snapshot()),
        }
    except (AstroschedError, FileNotFoundError, ValueError) as e:
        return _handle_error("evaluate", args, e)

    if getattr(args, "json", False):
        payload = _json_envelope(command="evaluate", ok=True, data=data, error=None)
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(f"Job '{job.name}' at {data['at']}")
        print(f"  Altitude     : {altitude:.1f}° (score {altitude_score:+d})")
        print(f"  Moon score   : {moon_score:+d}")
        print(f"  Next start   : {data['next_start'] or 'none within 24h'}")
        print(f"  Next end     : {data['next_end'] or 'none within 24h'} ({end_reason or '-'})")
        print(f"  Culmination  : {data['culmination'] or 'n/a'}")
    return 0


def run_night(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        context = build_context(config, location=_parse_location_args(args, config))
        when = context.location.to_local(_parse_datetime_arg(args.at))
        dawn, dusk = context.twilight.dawn_dusk(when, context.location)
        night, next_success = context.twilight.is_night_time(when, context.location)
    except (AstroschedError, FileNotFoundError, ValueError) as e:
        return _handle_error("night", args, e)

    data = {
        "at": _iso(when),
        "night": night,
        "next_dawn": _iso(dawn),
        "next_dusk": _iso(dusk),
        "next_night": _iso(next_success),
    }
    if getattr(args, "json", False):
        print(json.dumps(_json_envelope(command="night", ok=True, data=data), indent=2))
    else:
        print(f"At {data['at']}: {'night' if night else 'not night'}")
        print(f"  Next dawn : {data['next_dawn'] or 'none'}")
        print(f"  Next dusk : {data['next_dusk'] or 'none'}")
    return 0
