# radiocalico/client/identity.py
import logging
import secrets
import string
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_IDENTITY_FILE = "~/.config/radiocalico/user-id"
_ALPHABET = string.ascii_lowercase + string.digits


def new_user_identifier() -> str:
    return "user-" + "".join(secrets.choice(_ALPHABET) for _ in range(9))


def load_user_identifier(path: str = DEFAULT_IDENTITY_FILE) -> str:
    """
    Return this installation's listener id, creating and saving one on first use.
    The id is opaque to the server; it only has to stay stable.
    """
    id_file = Path(path).expanduser()
    if id_file.exists():
        user_id = id_file.read_text(encoding="utf-8").strip()
        if user_id:
            return user_id
        log.warning("Empty identity file at %s, issuing a new id", id_file)

    user_id = new_user_identifier()
    id_file.parent.mkdir(parents=True, exist_ok=True)
    id_file.write_text(user_id + "\n", encoding="utf-8")
    log.info("Issued listener id %s", user_id)
    return user_id
