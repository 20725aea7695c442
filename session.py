"""
Session state keys shared by the Streamlit pages
"""
from typing import MutableMapping

# Keys wiped by "Clear All Data"
SESSION_KEYS = [
    'file_name', 'loaded_upload_id', 'loaded_report_id', 'pending_toasts',
    'pending_cue', 'load_warnings', 'awb_input',
]

UPLOADER_GENERATION_KEY = 'uploader_generation'


def uploader_key(state: MutableMapping, name: str) -> str:
    """Widget key for a file uploader, renewed by every reset"""
    return f"{name}_{state.get(UPLOADER_GENERATION_KEY, 0)}"


def reset_session(state: MutableMapping) -> None:
    """Drop per-file state and detach the uploaders from the file they still hold"""
    for key in SESSION_KEYS:
        if key in state:
            del state[key]
    # An uploader keeps its file across reruns until it is rendered under a new key
    state[UPLOADER_GENERATION_KEY] = state.get(UPLOADER_GENERATION_KEY, 0) + 1
