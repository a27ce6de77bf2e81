"""Scheduling modules (weekly class timetable + its invocation boundary)."""

from .class_scheduler import (
	TIME_SLOTS,
	WEEKDAYS,
	AvailabilityTracker,
	ClassInfo,
	PlacementResult,
	Room,
	ScheduleResult,
	SchedulerSettings,
	SchedulingError,
	Session,
	Subject,
	Teacher,
	TimetableEntry,
	expand_sessions,
	format_failure_message,
	generate_timetable,
	place_sessions,
	schedule_summary,
	unresolved_subject_references,
)

from .timetable_worker import (
	RequestFormatError,
	TimetableRequest,
	WorkerConfig,
	handle_request,
	parse_request,
	run_in_worker,
	run_in_worker_async,
)

__all__ = [
	"TIME_SLOTS",
	"WEEKDAYS",
	"AvailabilityTracker",
	"ClassInfo",
	"PlacementResult",
	"Room",
	"ScheduleResult",
	"SchedulerSettings",
	"SchedulingError",
	"Session",
	"Subject",
	"Teacher",
	"TimetableEntry",
	"expand_sessions",
	"format_failure_message",
	"generate_timetable",
	"place_sessions",
	"schedule_summary",
	"unresolved_subject_references",
	"RequestFormatError",
	"TimetableRequest",
	"WorkerConfig",
	"handle_request",
	"parse_request",
	"run_in_worker",
	"run_in_worker_async",
]
