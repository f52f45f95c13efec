"""
Client for accessing Elpis server functions programmatically.

Functions are grouped by the steps of a transcription workflow:

1. dataset_*: upload transcripts with their recordings as training data
2. pron_dict_*: build a pronunciation dictionary
3. model_*: train language and acoustic models
4. transcription_*: transcribe new recordings
5. config_*: clean up

A full training session looks something like:

    with Elpis("http://0.0.0.0:5000") as elpis:
        elpis.dataset_new("ds")
        elpis.dataset_settings("Phrase")
        elpis.dataset_files(training_files)
        elpis.dataset_prepare()

        elpis.pron_dict_new("pd", "ds")
        elpis.pron_dict_l2s(Path("letter_to_sound.txt"))
        lexicon = elpis.pron_dict_generate_lexicon()
        elpis.pron_dict_save_lexicon(lexicon)

        elpis.model_new("m", "pd")
        elpis.model_settings(3)
        status = elpis.model_train()
        while status == "training":
            time.sleep(1)
            status = elpis.model_status()

        elpis.transcription_new(Path("recording.wav"))
        elpis.transcription_transcribe()
        print(elpis.transcription_text())

        elpis.config_reset()
"""

import logging
import sys
import tempfile
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Mapping

import httpx

from .config import ClientConfig
from .exceptions import InvalidURLError
from .schemas import endpoint as endpoints
from .schemas.endpoint import Endpoint
from .services.lexicon import format_lexicon, read_lexicon_file
from .services.projections import PROJECTIONS
from .services.requests import FormRequest, GetRequest, HttpRequest, JsonRequest, MultipartRequest
from .services.response import Response


def save_content(content: bytes, destination: str | PathLike | None = None,
                 prefix: str = "elpis-", suffix: str = "") -> Path:
    """
    Write downloaded content to a file.

    Args:
        content: Bytes to write
        destination: Target path, or None to create a new temporary file
        prefix: Temporary file name prefix
        suffix: Temporary file name suffix

    Returns:
        Path of the written file; a partially written file is removed on error
    """
    if destination is not None:
        path = Path(destination)
        handle = path.open("wb")
    else:
        handle = tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, delete=False)
        path = Path(handle.name)
    try:
        with handle:
            handle.write(content)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


def attach_console_handler(logger: logging.Logger) -> logging.Logger:
    """
    Make sure INFO records of a logger reach the console.

    Does nothing when the logger or one of its ancestors already has a
    handler, so applications that configure logging keep control of output.
    """
    if logger.hasHandlers():
        return logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    return logger


class Elpis:
    """
    Client for an Elpis server.

    Verbose summaries are logged at INFO. When verbose is set and no logger
    is passed, they are printed to stdout unless logging is already
    configured.

    Attributes:
        config: Connection settings
        logger: Logger used for verbose request/response summaries
        http_client: httpx client used as the transport
        last_response: The last response received from the server
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        authorization: str | None = None,
        verbose: bool = False,
        logger: logging.Logger | None = None,
        http_client: httpx.Client | None = None,
        config: ClientConfig | None = None,
    ):
        if config is None:
            if base_url is None:
                config = ClientConfig.from_env()
            else:
                config = ClientConfig(base_url=base_url, authorization=authorization, verbose=verbose)
        self.config = config
        if logger is None:
            logger = logging.getLogger(__name__)
            if config.verbose:
                attach_console_handler(logger)
        self.logger = logger
        self._owns_client = http_client is None
        self.http_client = http_client if http_client is not None else httpx.Client(timeout=config.timeout)
        self.last_response: Response | None = None

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def verbose(self) -> bool:
        return self.config.verbose

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "Elpis":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def url_for(self, resource: str) -> httpx.URL:
        """Construct the URL of a resource relative to the base URL."""
        try:
            return httpx.URL(self.config.base_url).join(resource)
        except httpx.InvalidURL as exc:
            raise InvalidURLError("Could not construct request URL") from exc

    def build_request(self, endpoint: Endpoint, params: Mapping[str, Any]) -> HttpRequest:
        """Create the request an endpoint needs and add its parameters."""
        url = self.url_for(endpoint.path)
        authorization = self.config.authorization
        if endpoint.method == "GET":
            request = GetRequest(url, authorization).set_parameters(params)
        elif endpoint.body_type == "json":
            request = JsonRequest(url, authorization).set_json_parameters(params)
        elif endpoint.body_type == "multipart":
            request = MultipartRequest(url, authorization).set_parameters(params)
        else:
            request = FormRequest(url, authorization).set_parameters(params)
        request.set_header("Accept", endpoint.accept)
        return request

    def call(self, endpoint: Endpoint, **params: Any) -> Any:
        """
        Invoke an endpoint and project its response.

        Args:
            endpoint: Endpoint descriptor
            **params: Request parameters; None values are omitted

        Returns:
            The projected result for the endpoint's result shape

        Raises:
            ElpisTransportError: if the server could not be reached
            ElpisException: if the server reported an error
        """
        request = self.build_request(endpoint, params)
        if self.verbose:
            self.logger.info("%s -> %s", endpoint.name, request)
        response = Response(request.send(self.http_client), expect_json=endpoint.expects_json)
        self.last_response = response
        if self.verbose:
            self.logger.info("%s <- %s", endpoint.name, response)
        response.check_for_errors()
        return self.project(endpoint, response)

    def project(self, endpoint: Endpoint, response: Response) -> Any:
        if endpoint.result == "none":
            return None
        if endpoint.result == "text":
            return response.get_raw()
        if endpoint.result == "file":
            return response.content
        return PROJECTIONS[endpoint.result](response.get(endpoint.field))

    # Dataset functions

    def dataset_new(self, name: str) -> None:
        """Create a new dataset."""
        self.call(endpoints.DATASET_NEW, name=name)

    def dataset_list(self) -> list[str]:
        """List current dataset names."""
        return self.call(endpoints.DATASET_LIST)

    def dataset_load(self, name: str) -> None:
        """Start using an existing dataset."""
        self.call(endpoints.DATASET_LOAD, name=name)

    def dataset_settings(self, tier: str) -> None:
        """
        Define dataset settings.

        Args:
            tier: Name of the ELAN tier that contains the transcript
        """
        self.call(endpoints.DATASET_SETTINGS, tier=tier)

    def dataset_files(self, files: Iterable[str | PathLike]) -> list[str]:
        """
        Upload transcript/audio files into the dataset.

        Args:
            files: wav recordings and/or ELAN .eaf transcripts

        Returns:
            Names of all dataset files uploaded so far
        """
        return self.call(endpoints.DATASET_FILES, file=[Path(f) for f in files])

    def dataset_prepare(self) -> dict[str, int]:
        """
        Process the transcripts to create word/frequency lists.

        Returns:
            Word types mapped to their frequencies in the uploaded transcripts
        """
        return self.call(endpoints.DATASET_PREPARE)

    # Pronunciation dictionary functions

    def pron_dict_new(self, name: str, dataset_name: str) -> None:
        """Create a new pronunciation dictionary for a dataset."""
        self.call(endpoints.PRON_DICT_NEW, name=name, dataset_name=dataset_name)

    def pron_dict_load(self, name: str) -> None:
        """Start using an existing pronunciation dictionary."""
        self.call(endpoints.PRON_DICT_LOAD, name=name)

    def pron_dict_list(self) -> list[str]:
        return self.call(endpoints.PRON_DICT_LIST)

    def pron_dict_l2s(self, path: str | PathLike) -> None:
        """
        Upload the letter-to-sound mapping used to build the dictionary.

        The file has one line per character: the character, a space, then a
        symbol (IPA or SAMPA) for how it is pronounced. Lines starting with
        '#' are comments.

            # This is a comment
            n n
            ng ŋ
        """
        self.call(endpoints.PRON_DICT_L2S, file=Path(path))

    def pron_dict_generate_lexicon(self) -> dict[str, str]:
        """
        Generate the pronunciation dictionary.

        Returns:
            Every word in the uploaded transcripts mapped to the pronunciation
            produced by the letter-to-sound mapping, in server order
        """
        return self.call(endpoints.PRON_DICT_GENERATE_LEXICON)

    def pron_dict_save_lexicon(self, lexicon: Mapping[str, str] | str | PathLike) -> None:
        """
        Update the pronunciation dictionary.

        Args:
            lexicon: Word -> pronunciation mapping, or the path of a lexicon file
        """
        if isinstance(lexicon, Mapping):
            content = format_lexicon(lexicon)
        else:
            content = read_lexicon_file(lexicon)
        self.call(endpoints.PRON_DICT_SAVE_LEXICON, lexicon=content)

    # Model functions

    def model_list(self) -> list[str]:
        return self.call(endpoints.MODEL_LIST)

    def model_new(self, name: str, pron_dict_name: str) -> None:
        """Create a new model using a pronunciation dictionary."""
        self.call(endpoints.MODEL_NEW, name=name, pron_dict_name=pron_dict_name)

    def model_load(self, name: str) -> None:
        self.call(endpoints.MODEL_LOAD, name=name)

    def model_settings(self, ngram: int) -> None:
        """
        Specify model configuration.

        Args:
            ngram: Number of consecutive words the language model uses
        """
        self.call(endpoints.MODEL_SETTINGS, ngram=str(ngram))

    def model_train(self) -> str:
        """Start training; returns the training status."""
        return self.call(endpoints.MODEL_TRAIN)

    def model_status(self) -> str:
        return self.call(endpoints.MODEL_STATUS)

    def model_results(self) -> dict[str, str]:
        """Return metric names mapped to their values for the trained model."""
        return self.call(endpoints.MODEL_RESULTS)

    # Transcription functions

    def transcription_new(self, path: str | PathLike) -> None:
        """Upload a wav recording to transcribe."""
        self.call(endpoints.TRANSCRIPTION_NEW, file=Path(path))

    def transcription_transcribe(self) -> str:
        """Transcribe the last uploaded recording; returns the transcription status."""
        return self.call(endpoints.TRANSCRIPTION_TRANSCRIBE)

    def transcription_status(self) -> str:
        return self.call(endpoints.TRANSCRIPTION_STATUS)

    def transcription_text(self) -> str:
        """Return the plain-text transcript of the last transcription."""
        return self.call(endpoints.TRANSCRIPTION_TEXT)

    def transcription_elan(self, destination: str | PathLike | None = None) -> Path:
        """
        Download the ELAN (.eaf) version of the last transcription.

        The file has a tier with an aligned annotation for each word token.

        Args:
            destination: Where to write the file; a new temporary file when None

        Returns:
            Path of the .eaf file, which the caller should delete when done
        """
        content = self.call(endpoints.TRANSCRIPTION_ELAN)
        return save_content(content, destination, prefix="transcription-elan-", suffix=".eaf")

    # Config functions

    def config_reset(self) -> None:
        """Reset the server, deleting all uploads, datasets, dictionaries and models."""
        self.call(endpoints.CONFIG_RESET)
