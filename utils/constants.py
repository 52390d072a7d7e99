# Role names
ROLE_ADMIN = "Admin"
ROLE_USER = "User"
ROLE_EDITOR = "Editor"

# Permission names
VIEW_USER = "view_user"
ASSIGN_ROLE = "assign_role"
VIEW_PET = "view_pet"
CREATE_PET = "create_pet"
EDIT_PET = "edit_pet"
CREATE_LIFE_EVENT = "create_life_event"
CREATE_COMMENT = "create_comment"
EDIT_COMMENT = "edit_comment"
CREATE_APPOINTMENT = "create_appointment"

ALL_PERMISSIONS = (
    VIEW_USER,
    ASSIGN_ROLE,
    VIEW_PET,
    CREATE_PET,
    EDIT_PET,
    CREATE_LIFE_EVENT,
    CREATE_COMMENT,
    EDIT_COMMENT,
    CREATE_APPOINTMENT,
)

# Default authorization graph, seeded at startup
DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: ALL_PERMISSIONS,
    ROLE_USER: (
        VIEW_PET,
        CREATE_PET,
        CREATE_LIFE_EVENT,
        CREATE_COMMENT,
        EDIT_COMMENT,
        CREATE_APPOINTMENT,
    ),
    ROLE_EDITOR: (VIEW_PET, EDIT_PET),
}

DATE_FMT = "%Y-%m-%d"
DATETIME_FMT = "%Y-%m-%d %H:%M:%S"
