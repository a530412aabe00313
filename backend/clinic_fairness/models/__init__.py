from .staff import Staff, FairnessScore
from .fairness_settings import FairnessSettings
from .doctor_schedule import Doctor, DoctorSchedule, ScheduleDoctor, DoctorCombination
from .leave import LeaveApplication, LeavePeriod, Holiday, StaffAssignment, LeaveType, LeaveStatus
