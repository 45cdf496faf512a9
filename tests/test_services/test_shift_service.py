import unittest
from datetime import datetime, date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401

from core.errors import NotFound
from company.models import Company
from job.models import Job
from requirement.roles import RoleCode
from requirement.schema import RoleRequirementItem
from shift.models import ShiftStatus
from shift.schemas import ShiftCreate

from shift import service


class ShiftServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        acme = Company(name="Acme Events")
        globex = Company(name="Globex Arena")
        self.db.add_all([acme, globex])
        self.db.flush()
        self.job = Job(company_id=acme.id, name="Spring Concert")
        self.other_job = Job(company_id=globex.id, name="Hockey Night")
        self.db.add_all([self.job, self.other_job])
        self.db.commit()
        self.acme_id = acme.id

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_date_defaults_to_start_day(self):
        dto = ShiftCreate(
            job_id=self.job.id,
            start_at=datetime(2025, 6, 2, 22, 0),
            end_at=datetime(2025, 6, 3, 4, 0),
        )
        self.assertIsNone(dto.date)
        row = service.create_shift(self.db, dto)
        self.assertEqual(row.date, date(2025, 6, 2))
        self.assertEqual(row.status, ShiftStatus.Pending)

    def test_explicit_date_and_requirements(self):
        dto = ShiftCreate(
            job_id=self.job.id,
            date=date(2025, 6, 5),
            start_at=datetime(2025, 6, 5, 9, 0),
            end_at=datetime(2025, 6, 5, 17, 0),
            requirements=[RoleRequirementItem(role_code=RoleCode.SH, required_count=3)],
        )
        row = service.create_shift(self.db, dto)
        self.assertEqual(row.date, date(2025, 6, 5))
        self.assertEqual(row.required_stagehands, 3)

    def test_unknown_job_is_not_found(self):
        dto = ShiftCreate(job_id=999, start_at=datetime(2025, 6, 2, 9), end_at=datetime(2025, 6, 2, 17))
        with self.assertRaises(NotFound):
            service.create_shift(self.db, dto)

    def test_list_filters(self):
        a = service.create_shift(self.db, ShiftCreate(
            job_id=self.job.id, start_at=datetime(2025, 6, 2, 9), end_at=datetime(2025, 6, 2, 17)))
        b = service.create_shift(self.db, ShiftCreate(
            job_id=self.job.id, start_at=datetime(2025, 6, 3, 9), end_at=datetime(2025, 6, 3, 17)))
        c = service.create_shift(self.db, ShiftCreate(
            job_id=self.other_job.id, start_at=datetime(2025, 6, 2, 9), end_at=datetime(2025, 6, 2, 17)))

        self.assertEqual([s.id for s in service.get_shifts(self.db)], [a.id, c.id, b.id])
        self.assertEqual([s.id for s in service.get_shifts(self.db, on_date=date(2025, 6, 2))], [a.id, c.id])
        self.assertEqual([s.id for s in service.get_shifts(self.db, company_id=self.acme_id)], [a.id, b.id])
        with self.assertRaises(NotFound):
            service.get_shift_or_404(self.db, 999)


if __name__ == "__main__":
    unittest.main()
