"""Lua script loader for document store Kvrocks operations"""

from pathlib import Path


def load_lua_script(*, script_name: str) -> str:
    """
    Load a Lua script from the lua_script directory

    Raises:
        FileNotFoundError: If the script file doesn't exist
    """
    script_path = Path(__file__).parent / f'{script_name}.lua'

    if not script_path.exists():
        raise FileNotFoundError(f'Lua script not found: {script_path}')

    return script_path.read_text(encoding='utf-8')


CREATE_DOCUMENT_SCRIPT = load_lua_script(script_name='create_document')
UPDATE_DOCUMENT_IF_SCRIPT = load_lua_script(script_name='update_document_if')
DELETE_DOCUMENT_SCRIPT = load_lua_script(script_name='delete_document')
