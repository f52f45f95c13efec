"""
Pydantic schemas describing Elpis API endpoints.

Each endpoint is a relative path plus everything needed to build its request
and project its response: HTTP method, body kind, accepted media type and
result shape.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from .request import ACCEPT_EAF, ACCEPT_JSON, ACCEPT_TEXT, BodyType, HttpMethod


# Shapes a response can be projected into
ResultShape = Literal["none", "names", "counts", "mapping", "scalar", "lexicon", "text", "file"]


class Endpoint(BaseModel):
    """Descriptor for a single Elpis API endpoint."""
    name: str
    path: str
    method: HttpMethod = "POST"
    body_type: BodyType | None = None
    accept: str = ACCEPT_JSON
    result: ResultShape = "none"
    field: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def expects_json(self) -> bool:
        """Whether the response body should be parsed as JSON."""
        return self.result not in ("text", "file")


# Dataset endpoints

DATASET_NEW = Endpoint(name="dataset_new", path="dataset/new", body_type="json")
DATASET_LIST = Endpoint(
    name="dataset_list", path="dataset/list", method="GET", result="names", field="list"
)
DATASET_LOAD = Endpoint(name="dataset_load", path="dataset/load", body_type="json")
DATASET_SETTINGS = Endpoint(name="dataset_settings", path="dataset/settings", body_type="json")
DATASET_FILES = Endpoint(
    name="dataset_files", path="dataset/files", body_type="multipart", result="names", field="files"
)
DATASET_PREPARE = Endpoint(
    name="dataset_prepare", path="dataset/prepare", result="counts", field="wordlist"
)

# Pronunciation dictionary endpoints

PRON_DICT_NEW = Endpoint(name="pron_dict_new", path="pron-dict/new", body_type="json")
PRON_DICT_LOAD = Endpoint(name="pron_dict_load", path="pron-dict/load", body_type="json")
PRON_DICT_LIST = Endpoint(
    name="pron_dict_list", path="pron-dict/list", method="GET", result="names", field="list"
)
PRON_DICT_L2S = Endpoint(name="pron_dict_l2s", path="pron-dict/l2s", body_type="multipart")
PRON_DICT_GENERATE_LEXICON = Endpoint(
    name="pron_dict_generate_lexicon",
    path="pron-dict/generate-lexicon",
    method="GET",
    result="lexicon",
    field="lexicon",
)
PRON_DICT_SAVE_LEXICON = Endpoint(
    name="pron_dict_save_lexicon", path="pron-dict/save-lexicon", body_type="json"
)

# Model endpoints

MODEL_LIST = Endpoint(
    name="model_list", path="model/list", method="GET", result="names", field="list"
)
MODEL_NEW = Endpoint(name="model_new", path="model/new", body_type="json")
MODEL_LOAD = Endpoint(name="model_load", path="model/load", body_type="json")
MODEL_SETTINGS = Endpoint(name="model_settings", path="model/settings", body_type="json")
MODEL_TRAIN = Endpoint(
    name="model_train", path="model/train", method="GET", result="scalar", field="status"
)
MODEL_STATUS = Endpoint(
    name="model_status", path="model/status", method="GET", result="scalar", field="status"
)
MODEL_RESULTS = Endpoint(
    name="model_results", path="model/results", method="GET", result="mapping", field="results"
)

# Transcription endpoints

TRANSCRIPTION_NEW = Endpoint(
    name="transcription_new", path="transcription/new", body_type="multipart"
)
TRANSCRIPTION_TRANSCRIBE = Endpoint(
    name="transcription_transcribe",
    path="transcription/transcribe",
    method="GET",
    result="scalar",
    field="status",
)
TRANSCRIPTION_STATUS = Endpoint(
    name="transcription_status",
    path="transcription/status",
    method="GET",
    result="scalar",
    field="status",
)
TRANSCRIPTION_TEXT = Endpoint(
    name="transcription_text",
    path="transcription/text",
    method="GET",
    accept=ACCEPT_TEXT,
    result="text",
)
TRANSCRIPTION_ELAN = Endpoint(
    name="transcription_elan",
    path="transcription/elan",
    method="GET",
    accept=ACCEPT_EAF,
    result="file",
)

# Config endpoints

CONFIG_RESET = Endpoint(name="config_reset", path="config/reset")
