# models_bootstrap.py
from company import models as _company_models
from job import models as _job_models
from user import models as _user_models
from shift import models as _shift_models
from assignment import models as _assignment_models
from timeclock import models as _timeclock_models
from timesheet import models as _timesheet_models
