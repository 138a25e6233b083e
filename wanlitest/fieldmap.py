"""Translation of submission results between backend and frontend field names

The backend reports a graded submission using its own names (assignmentId, studentUsername,
score, feedback, ...) while the frontend and the acceptance tests use different ones
(homework_id, student_name, total_score, teacher_comment, ...). The tables below are the one place
where this mapping is defined; every field is listed, even those whose name doesn't change.

This is a public helper for acceptance test drivers that check submission result payloads;
nothing else in wanlitest uses it.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class QuestionResult:
    question_id: Optional[str] = None
    content: Optional[str] = None
    student_answer: Optional[str] = None
    standard_answer: Optional[str] = None
    score: Optional[float] = None
    max_score: Optional[float] = None
    explanation: Optional[str] = None
    video_url: Optional[str] = None


@dataclass
class SubmissionResult:
    submission_id: Optional[str] = None
    homework_id: Optional[str] = None
    homework_title: Optional[str] = None
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    total_score: Optional[float] = None
    max_score: Optional[float] = None
    teacher_comment: Optional[str] = None
    teacher_feedback: Optional[str] = None
    submitted_at: Optional[str] = None
    graded_at: Optional[str] = None
    questions: list[QuestionResult] = field(default_factory=list)


# backend field name -> SubmissionResult attribute
SUBMISSION_FIELDS = (
    ('submissionId', 'submission_id'),
    ('assignmentId', 'homework_id'),
    ('assignmentTitle', 'homework_title'),
    ('studentId', 'student_id'),
    ('studentUsername', 'student_name'),
    ('score', 'total_score'),
    ('maxScore', 'max_score'),
    ('feedback', 'teacher_comment'),
    ('teacherFeedback', 'teacher_feedback'),
    ('submittedAt', 'submitted_at'),
    ('gradedAt', 'graded_at'),
    ('questions', 'questions'),
)

# backend question field name -> QuestionResult attribute
QUESTION_FIELDS = (
    ('id', 'question_id'),
    ('content', 'content'),
    ('studentAnswer', 'student_answer'),
    ('standardAnswer', 'standard_answer'),
    ('score', 'score'),
    ('maxScore', 'max_score'),
    ('explanation', 'explanation'),
    ('videoUrl', 'video_url'),
)

# Both tables must name every attribute exactly once
assert ([attr for _, attr in SUBMISSION_FIELDS]
        == [f.name for f in dataclasses.fields(SubmissionResult)])
assert ([attr for _, attr in QUESTION_FIELDS]
        == [f.name for f in dataclasses.fields(QuestionResult)])


def question_to_frontend(payload: dict[str, Any]) -> QuestionResult:
    return QuestionResult(**{attr: payload.get(key) for key, attr in QUESTION_FIELDS})


def question_to_backend(question: QuestionResult) -> dict[str, Any]:
    return {key: getattr(question, attr) for key, attr in QUESTION_FIELDS}


def to_frontend(payload: dict[str, Any]) -> SubmissionResult:
    """Convert a backend submission result into a SubmissionResult.

    Unknown backend fields are ignored and missing ones are None (an empty list for questions).
    """
    values = {attr: payload.get(key) for key, attr in SUBMISSION_FIELDS}
    values['questions'] = [question_to_frontend(q) for q in payload.get('questions') or []]
    return SubmissionResult(**values)


def to_backend(result: SubmissionResult) -> dict[str, Any]:
    """Convert a SubmissionResult back into the backend field names."""
    payload = {key: getattr(result, attr) for key, attr in SUBMISSION_FIELDS}
    payload['questions'] = [question_to_backend(q) for q in result.questions]
    return payload
