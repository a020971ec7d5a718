from models.base import Base

from models.user import User, UserRole
from models.charity import Charity
from models.fundraising import Fundraising, FundraisingKind, GENERAL_FUND_TARGET
from models.donation import Donation, PaymentStatus
from models.recurring_payment import RecurringPayment
from models.report import Report
