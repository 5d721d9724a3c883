"""Collection of process runtime statistics."""

from __future__ import annotations
import gc
import os
import random
import resource
import threading
import time


def poll_runtime_metrics() -> dict[str, float]:
    """Return a gauge reading for each tracked process statistic."""
    usage = resource.getrusage(resource.RUSAGE_SELF)
    gen0, gen1, gen2 = gc.get_count()
    stats = gc.get_stats()
    gauges: dict[str, float] = {
        "GCGen0Count": float(gen0),
        "GCGen1Count": float(gen1),
        "GCGen2Count": float(gen2),
        "GCCollections": float(sum(s.get("collections", 0) for s in stats)),
        "GCCollected": float(sum(s.get("collected", 0) for s in stats)),
        "GCUncollectable": float(sum(s.get("uncollectable", 0) for s in stats)),
        "GCObjects": float(len(gc.get_objects())),
        "MaxRSS": float(usage.ru_maxrss),
        "UserCPUTime": usage.ru_utime,
        "SystemCPUTime": usage.ru_stime,
        "MinorPageFaults": float(usage.ru_minflt),
        "MajorPageFaults": float(usage.ru_majflt),
        "VoluntaryContextSwitches": float(usage.ru_nvcsw),
        "InvoluntaryContextSwitches": float(usage.ru_nivcsw),
        "ThreadCount": float(threading.active_count()),
        "ProcessTime": time.process_time(),
        "RandomValue": random.random(),
    }
    if hasattr(os, "getloadavg"):
        gauges["LoadAverage1m"] = os.getloadavg()[0]
    return gauges


__all__ = ["poll_runtime_metrics"]
