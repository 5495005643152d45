from .base_service import BaseService
from .conflict_service import ScheduleConflictService
from .user_service import UserService
from .branch_service import BranchService
from .classroom_service import ClassroomService
from .class_service import ClassService
from .student_service import StudentService
from .enrollment_service import EnrollmentService, CancelledEnrollment
from .attendance_service import AttendanceService
from .payment_service import PaymentService
