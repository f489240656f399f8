# imgsrc/services/formatting.py
from typing import Any, Dict, Optional

KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def format_bytes(n: int) -> str:
    if n >= GB:
        return f"{n / GB:.2f} GB"
    if n >= MB:
        return f"{n / MB:.2f} MB"
    if n >= KB:
        return f"{n / KB:.2f} KB"
    return f"{n} bytes"


def format_usage(used: int, limit: Optional[int], unit: str) -> str:
    if limit is None:
        return f"{used:,} {unit} (unlimited)"
    pct = (used / limit) * 100 if limit else 0.0
    return f"{used:,} / {limit:,} {unit} ({pct:.1f}%)"


def summarize_usage(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a raw ``/api/v1/usage`` body into the human-readable summary the
    get_usage tool returns. Missing counters read as zero, missing limits as
    unlimited.
    """
    limits = data.get("plan_limits") or {}
    period = data.get("current_period") or {}
    storage_used = data.get("storage_used_bytes") or 0
    bandwidth = period.get("bandwidth_bytes") or 0

    max_storage = limits.get("max_storage_bytes")
    storage = f"{format_bytes(storage_used)} used"
    if max_storage:
        storage += f" / {format_bytes(max_storage)} ({storage_used / max_storage * 100:.1f}%)"
    else:
        storage += " (unlimited)"

    return {
        "success": True,
        "plan": data.get("plan"),
        "plan_name": data.get("plan_name"),
        "plan_status": data.get("plan_status"),
        "current_period": {
            "period": period.get("period"),
            "start": period.get("period_start"),
            "end": period.get("period_end"),
        },
        "usage": {
            "uploads": format_usage(
                period.get("uploads") or 0, limits.get("max_uploads_per_month"), "uploads"
            ),
            "storage": storage,
            "bandwidth": format_usage(
                bandwidth,
                limits.get("max_bandwidth_per_month"),
                f"bytes ({format_bytes(bandwidth)})",
            ),
            "api_requests": format_usage(
                period.get("api_requests") or 0,
                limits.get("max_api_requests_per_month"),
                "requests",
            ),
            "transformations": format_usage(
                period.get("transformations") or 0,
                limits.get("max_transformations_per_month"),
                "transformations",
            ),
        },
        "total_images": data.get("total_images"),
        "credits": data.get("credits"),
    }
