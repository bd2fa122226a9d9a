"""Judges that turn a job event into a :class:`~redshell.verdicts.Verdict`."""

from .code import judge_code
from .router import detect_job_type, route_to_judge
from .text import judge_text

__all__ = ["detect_job_type", "judge_code", "judge_text", "route_to_judge"]
