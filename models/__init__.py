from models.base_model import Base, BaseModel
from models.user import User
from models.role import Role, Permission, RolePermission, UserRole
from models.pet import Pet, PetLifeEvent, Media, Comment
from models.appointment import Appointment, AppointmentStatus
from models.login_history import LoginHistory
from models.token_blacklist import TokenBlacklist
from models.db_storage import DBStorage
