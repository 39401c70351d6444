class FarmImportError(Exception):
    """Base class for errors that end an import run."""


class MissingCredentialError(FarmImportError):
    pass


class InvalidPlaylistError(FarmImportError):
    pass


class PlaylistFetchError(FarmImportError):
    """The playlist listing failed; no partial result is kept."""


class ModelResponseError(Exception):
    """The model reply could not be decoded into a JSON object."""
