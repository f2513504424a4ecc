from pathlib import Path
from typing import Annotated

import typer

from bou_responder.cli.utils import LogLevels

CLIContext = typer.Context

AppVersionOption = Annotated[
    bool,
    typer.Option(
        "-v",
        "--version",
        help="Show the version and exit.",
        is_eager=True,
    ),
]

AppConfigOption = Annotated[
    Path | None,
    typer.Option(
        "-c",
        "--config",
        help="YAML file with the `bouOptions` mapping. Defaults to ./config.yml.",
        envvar="BOU_RESPONDER_CONFIG",
        dir_okay=False,
    ),
]

AppCaFileOption = Annotated[
    Path | None,
    typer.Option(
        "--ca-file",
        help="PEM bundle used to verify the broker certificate.",
        envvar="BOU_RESPONDER_CA_FILE",
        dir_okay=False,
    ),
]

AppLogLevelOption = Annotated[
    LogLevels,
    typer.Option(
        "--log-level",
        help="Set the log level of the application.",
        case_sensitive=False,
        envvar="BOU_RESPONDER_LOG_LEVEL_NAME",
    ),
]

AppLogSerializeOption = Annotated[
    bool,
    typer.Option(
        "--log-serialize",
        help="Emit the logs as JSON lines.",
        envvar="BOU_RESPONDER_ENABLE_LOG_SERIALIZE",
    ),
]
