from bs4.element import Tag

USERNAME_HINTS = ("user", "email", "login")
USERNAME_INPUT_TYPES = ("text", "email")


def _looks_like_username(field: Tag) -> bool:
    name = (field.get("name") or "").lower()
    field_id = (field.get("id") or "").lower()
    return any(hint in name or hint in field_id for hint in USERNAME_HINTS)


def is_login_form(form: Tag) -> bool:
    """Return True if `form` holds both a password input and a username-like input.

    All descendants are scanned, not only direct children. Only an explicit
    `type="text"` or `type="email"` counts as a username field; an input with
    no `type` attribute does not.
    """
    has_password = False
    has_username = False
    for field in form.find_all("input"):
        input_type = field.get("type")
        if input_type == "password":
            has_password = True
        elif input_type in USERNAME_INPUT_TYPES and _looks_like_username(field):
            has_username = True
        if has_password and has_username:
            return True
    return False
