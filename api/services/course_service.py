"""
Course content service: turns course rows into the content the progress core works on.
"""

from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from api.models.models import Course, Enrollment, Lesson as DbLesson, Module as DbModule, Question as DbQuestion, Quiz as DbQuiz
from api.schemas.course_schemas import CourseDefinition, CourseSummary
from api.schemas.user_schemas import User
from api.utils.auth import course_allowed
from api.utils.logger import configure_logging
from progression.errors import Forbidden, NotFound
from progression.models import (
    CourseContent,
    LearnerProgress,
    Lesson,
    Module,
    QubitsModule,
    Question,
    QuestionOption,
    Quiz,
)

logger = configure_logging()


def qubits_id(module_number: int) -> str:
    return f"qubits-{module_number}"


class CourseService:
    def __init__(self, db: DBSession):
        self.db = db

    def list_courses(self, user: User) -> List[CourseSummary]:
        courses = (
            self.db.query(Course)
            .filter(Course.is_published.is_(True))
            .order_by(Course.code.asc())
            .all()
        )
        enrollments = {
            e.course_id: e.id
            for e in self.db.query(Enrollment).filter(Enrollment.user_id == user.id).all()
        }
        return [
            self.summary(c, enrollments.get(c.id))
            for c in courses
            if course_allowed(user, c.code)
        ]

    def summary(self, course: Course, enrollment_id: Optional[str] = None) -> CourseSummary:
        return CourseSummary(
            id=course.id,
            code=course.code,
            title=course.title,
            description=course.description,
            total_modules=len(course.modules),
            enrollment_id=enrollment_id,
        )

    def get_course(self, code: str) -> Course:
        course = self.db.query(Course).filter(Course.code == code).first()
        if course is None:
            raise NotFound("Course not found", details={"course_code": code})
        return course

    def get_allowed_course(self, user: User, code: str) -> Course:
        """Course by code, after the identity's allow-list check."""
        if not course_allowed(user, code):
            logger.warning("course %s not in allow-list of user=%s", code, user.id)
            raise Forbidden("Course not available for this account", details={"course_code": code})
        return self.get_course(code)

    def build_content(self, course: Course) -> CourseContent:
        modules: list[Module] = []
        qubits: list[QubitsModule] = []
        for m in course.modules:
            quiz_row = m.quiz
            questions = []
            if quiz_row is not None:
                questions = [
                    Question(
                        id=q.id,
                        text=q.question_text,
                        question_type=q.question_type,
                        options=[QuestionOption(id=str(o.get("id")), text=str(o.get("text", ""))) for o in (q.options or [])],
                        correct_option_ids=[str(a) for a in (q.correct_answers or [])],
                        points=q.points if q.points is not None else 1,
                        question_number=q.question_number,
                    )
                    for q in quiz_row.questions
                ]
                quiz = Quiz(
                    id=quiz_row.id,
                    title=quiz_row.title,
                    questions=questions,
                    passing_score=quiz_row.passing_score,
                    max_attempts=quiz_row.max_attempts,
                    show_correct_answers=bool(quiz_row.show_correct_answers),
                )
            else:
                # modules without an authored quiz get an empty one so the unlock rules still apply
                quiz = Quiz(id=f"{m.id}-quiz", title=f"{m.title} Quiz")
            modules.append(
                Module(
                    id=m.id,
                    number=m.number,
                    title=m.title,
                    lessons=[
                        Lesson(
                            id=l.id,
                            title=l.title,
                            content_type=l.content_type,
                            content_ref=l.content_ref,
                            duration_seconds=l.duration_seconds,
                        )
                        for l in m.lessons
                    ],
                    quiz=quiz,
                )
            )
            qubits.append(
                QubitsModule(
                    id=qubits_id(m.number),
                    module_id=m.id,
                    title=f"Module {m.number}",
                    subtitle=m.title,
                    total_questions=len(questions),
                    unattempted=len(questions),
                )
            )
        total_lessons = sum(len(m.lessons) for m in modules)
        return CourseContent(
            course_id=course.id,
            course_code=course.code,
            title=course.title,
            modules=modules,
            qubits_modules=qubits,
            learner_progress=LearnerProgress(total_lessons=total_lessons),
        )

    def import_course(self, definition: CourseDefinition, *, replace: bool = False) -> Course:
        """
        Create a course from an authoring definition.

        Ids are derived from the course code so question ids keep the
        `<module id>-<suffix>` shape that practice attribution relies on.
        Existing courses are only overwritten with `replace=True`; saved
        learner snapshots for them are then discarded on the next load if
        the module or lesson counts changed.
        """
        existing = self.db.query(Course).filter(Course.code == definition.code).first()
        if existing is not None:
            if not replace:
                raise ValueError(f"Course {definition.code!r} already exists")
            logger.info("replacing course %s", definition.code)
            self.db.delete(existing)
            self.db.flush()

        prefix = definition.code.lower()
        course = Course(
            id=f"course-{prefix}",
            code=definition.code,
            title=definition.title,
            description=definition.description,
        )
        self.db.add(course)
        for n, m in enumerate(definition.modules, start=1):
            module = DbModule(id=f"{prefix}-m{n}", course_id=course.id, number=n, title=m.title)
            self.db.add(module)
            for i, l in enumerate(m.lessons, start=1):
                self.db.add(
                    DbLesson(
                        id=f"{module.id}-l{i}",
                        module_id=module.id,
                        order_index=i,
                        title=l.title,
                        content_type=l.content_type,
                        content_ref=l.content_ref,
                        duration_seconds=l.duration_seconds,
                    )
                )
            if m.quiz is None:
                continue
            quiz = DbQuiz(
                id=f"{module.id}-quiz",
                module_id=module.id,
                title=m.quiz.title or f"{m.title} Quiz",
                passing_score=m.quiz.passing_score,
                max_attempts=m.quiz.max_attempts,
                show_correct_answers=m.quiz.show_correct_answers,
            )
            self.db.add(quiz)
            for i, q in enumerate(m.quiz.questions, start=1):
                self.db.add(
                    DbQuestion(
                        id=f"{module.id}-q{i}",
                        quiz_id=quiz.id,
                        question_number=i,
                        question_text=q.text,
                        question_type=q.question_type,
                        options=q.options,
                        correct_answers=q.correct_answers,
                        points=q.points,
                    )
                )
        self.db.commit()
        self.db.refresh(course)
        logger.info("imported course %s modules=%s", course.code, len(definition.modules))
        return course
