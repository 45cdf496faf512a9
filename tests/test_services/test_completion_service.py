import unittest
from datetime import datetime, date
from unittest.mock import patch

from sqlalchemy import create_engine, select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401

from company.models import Company
from job.models import Job
from user.models import User, UserRole
from shift.models import Shift, ShiftStatus
from assignment.models import Assignment, WorkerStatus
from assignment.service import mark_no_show
from timeclock.service import clock_in, end_worker_shift
from timesheet.models import Timesheet, TimesheetStatus

from completion import service


class CompletionServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        company = Company(name="Acme Events")
        self.db.add(company)
        self.db.flush()
        job = Job(company_id=company.id, name="Spring Concert")
        self.db.add(job)
        self.db.flush()

        self.admin = User(name="Ada", email="ada@crewplan.io", role=UserRole.Admin, is_active=True)
        self.w1 = User(name="Wes", email="wes@crewplan.io", role=UserRole.Employee, is_active=True)
        self.w2 = User(name="Vic", email="vic@crewplan.io", role=UserRole.Employee, is_active=True)
        self.db.add_all([self.admin, self.w1, self.w2])
        self.db.flush()

        self.shift = Shift(
            job_id=job.id,
            date=date(2025, 6, 2),
            start_at=datetime(2025, 6, 2, 9, 0),
            end_at=datetime(2025, 6, 2, 17, 0),
        )
        self.empty_shift = Shift(
            job_id=job.id,
            date=date(2025, 6, 3),
            start_at=datetime(2025, 6, 3, 9, 0),
            end_at=datetime(2025, 6, 3, 17, 0),
        )
        self.db.add_all([self.shift, self.empty_shift])
        self.db.flush()

        self.a1 = Assignment(shift_id=self.shift.id, user_id=self.w1.id, role_code="SH", status=WorkerStatus.Assigned)
        self.a2 = Assignment(shift_id=self.shift.id, user_id=self.w2.id, role_code="SH", status=WorkerStatus.Assigned)
        self.db.add_all([self.a1, self.a2])
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _timesheets(self):
        return list(self.db.scalars(select(Timesheet).where(Timesheet.shift_id == self.shift.id)))

    def test_shift_without_assignments_is_never_complete(self):
        self.assertFalse(service.is_shift_complete(self.db, self.empty_shift.id))
        outcome = service.complete_shift_if_done(self.db, self.empty_shift.id, actor=self.admin)
        self.assertFalse(outcome.shift_complete)
        self.assertIsNone(outcome.timesheet)

    def test_incomplete_shift_is_noop(self):
        self.a1.status = WorkerStatus.ShiftEnded
        self.db.commit()
        outcome = service.complete_shift_if_done(self.db, self.shift.id, actor=self.admin)
        self.assertFalse(outcome.shift_complete)
        self.assertEqual(self._timesheets(), [])

    def test_no_show_plus_ended_worker_completes_shift(self):
        mark_no_show(self.db, self.a1.id, actor=self.admin, now=datetime(2025, 6, 2, 9, 30))
        self.assertEqual(self._timesheets(), [])

        clock_in(self.db, self.a2.id, actor=self.admin, now=datetime(2025, 6, 2, 9, 0))
        result = end_worker_shift(self.db, self.a2.id, actor=self.admin, now=datetime(2025, 6, 2, 17, 0))

        sheets = self._timesheets()
        self.assertEqual(len(sheets), 1)
        self.assertEqual(sheets[0].status, TimesheetStatus.PENDING_COMPANY_APPROVAL)
        self.assertEqual(sheets[0].submitted_by, self.admin.id)
        self.assertEqual(sheets[0].submitted_at, datetime(2025, 6, 2, 17, 0))
        self.assertEqual(result.completion.timesheet.id, sheets[0].id)
        self.assertEqual(self.db.get(Shift, self.shift.id).status, ShiftStatus.Completed)

    def test_completion_check_is_idempotent(self):
        self.a1.status = WorkerStatus.ShiftEnded
        self.a2.status = WorkerStatus.NoShow
        self.db.commit()

        first = service.complete_shift_if_done(self.db, self.shift.id, actor=self.admin)
        second = service.complete_shift_if_done(self.db, self.shift.id, actor=self.admin)

        self.assertTrue(first.created)
        self.assertFalse(second.created)
        self.assertEqual(first.timesheet.id, second.timesheet.id)
        count = self.db.scalar(select(func.count(Timesheet.id)))
        self.assertEqual(count, 1)

    def test_failed_timesheet_write_keeps_worker_transition(self):
        self.a1.status = WorkerStatus.NoShow
        self.db.commit()

        with patch("completion.service.open_timesheet", side_effect=SQLAlchemyError("disk full")):
            result = end_worker_shift(self.db, self.a2.id, actor=self.admin, now=datetime(2025, 6, 2, 17, 0))

        self.assertTrue(result.completion.shift_complete)
        self.assertIn("disk full", result.completion.error)
        self.assertEqual(self.db.get(Assignment, self.a2.id).status, WorkerStatus.ShiftEnded)
        self.assertEqual(self._timesheets(), [])
        self.assertNotEqual(self.db.get(Shift, self.shift.id).status, ShiftStatus.Completed)

        # a later check picks the shift up again
        retry = service.complete_shift_if_done(self.db, self.shift.id, actor=self.admin)
        self.assertTrue(retry.created)


    def test_concurrently_opened_timesheet_is_returned(self):
        self.a1.status = WorkerStatus.ShiftEnded
        self.a2.status = WorkerStatus.NoShow
        theirs = Timesheet(shift_id=self.shift.id, status=TimesheetStatus.PENDING_COMPANY_APPROVAL)
        self.db.add(theirs)
        self.db.commit()

        real_lookup = service.get_timesheet_for_shift
        lookups = []

        def stale_then_real(db, shift_id):
            lookups.append(shift_id)
            return None if len(lookups) == 1 else real_lookup(db, shift_id)

        with patch("completion.service.get_timesheet_for_shift", side_effect=stale_then_real):
            outcome = service.complete_shift_if_done(self.db, self.shift.id, actor=self.admin)

        self.assertTrue(outcome.shift_complete)
        self.assertFalse(outcome.created)
        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.timesheet.id, theirs.id)
        self.assertEqual(len(self._timesheets()), 1)


if __name__ == "__main__":
    unittest.main()
