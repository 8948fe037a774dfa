from __future__ import annotations

import logging
import os
import sys

import typer

from whoisit.common.run_id import generate_run_id
from whoisit.common.sanitize import maskSecret
from whoisit.config import Settings, loadSettings
from whoisit.domain.models import LookupOptions
from whoisit.domain.ports.credentials import TokenCredentialProtocol
from whoisit.domain.ports.directory import DirectoryClientProtocol
from whoisit.infra.auth import (
    AzureCliCredential,
    ChainedTokenCredential,
    EnvironmentCredential,
    InteractiveBrowserCredential,
)
from whoisit.infra.console.presenter import ConsolePresenter
from whoisit.infra.http.graph_client import GraphApiClient
from whoisit.infra.http.graph_directory import GraphDirectoryGateway
from whoisit.infra.logging.setup import (
    StdStreamToLogger,
    TeeStream,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
)
from whoisit.infra.photos.photo_store import FilePhotoStore
from whoisit.infra.platform.clipboard import select_clipboard_writer
from whoisit.infra.platform.inline_image import select_inline_image_renderer
from whoisit.infra.sources.stdin_reader import is_input_piped, read_identifiers
from whoisit.usecases.lookup_usecase import LookupUseCase

app = typer.Typer(add_completion=False)

USAGE_LINES = (
    "Usage: whoisit <UId|EMAIL> [-x] [-t] [-p]",
    "       cat file.csv | whoisit [-x] [-p]",
    "       -x    Show extended information",
    "       -t    Traverse manager tree up to the top",
    "       -p    Download and save profile photo",
    "Example: whoisit Z999ABCD",
    "         whoisit john.doe@somecompany.com",
    "         whoisit Z999ABCD -x",
    "         whoisit Z999ABCD -t",
    "         whoisit Z999ABCD -p",
    "         cat batch.csv | whoisit",
)


def printUsage() -> None:
    for line in USAGE_LINES:
        typer.echo(line)


def buildCredential(settings: Settings) -> TokenCredentialProtocol:
    """
    Назначение:
        Собирает цепочку источников токена в порядке settings.credential_chain:
        - "environment" -> EnvironmentCredential (AZURE_* переменные, msal confidential client)
        - "azure_cli"   -> AzureCliCredential (`az login`)
        - "interactive" -> InteractiveBrowserCredential (msal public client, браузер)
    """
    credentials: list[TokenCredentialProtocol] = []
    for name in settings.credential_chain:
        if name == "environment":
            credentials.append(EnvironmentCredential(authority_host=settings.authority_host))
        elif name == "azure_cli":
            credentials.append(
                AzureCliCredential(tenant_id=settings.tenant_id, timeout_seconds=settings.timeout_seconds)
            )
        elif name == "interactive":
            credentials.append(
                InteractiveBrowserCredential(
                    client_id=settings.client_id,
                    tenant_id=settings.tenant_id,
                    authority_host=settings.authority_host,
                )
            )
    return ChainedTokenCredential(credentials)


def buildGraphClient(settings: Settings, apiTransport=None) -> GraphApiClient:
    return GraphApiClient(
        baseUrl=settings.graph_base_url,
        credential=buildCredential(settings),
        timeoutSeconds=settings.timeout_seconds,
        retries=settings.retries,
        retryBackoffSeconds=settings.retry_backoff_seconds,
        transport=apiTransport,
    )


def buildDirectory(client: GraphApiClient) -> DirectoryClientProtocol:
    return GraphDirectoryGateway(client)


def logRunHeader(logger: logging.Logger, runId: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Пишет в лог безопасную сводку параметров запуска (без секретов).
    """
    logEvent(
        logger,
        logging.DEBUG,
        runId,
        "config",
        f"graph_base_url={settings.graph_base_url} tenant_id={settings.tenant_id} "
        f"client_id={settings.client_id} chain={','.join(settings.credential_chain)} "
        f"azure_client_secret={maskSecret(_envSecret())} photos_dir={settings.photos_dir} "
        f"max_depth={settings.max_depth} sources={sources}",
    )


def _envSecret() -> str | None:
    return os.getenv("AZURE_CLIENT_SECRET")


def runWithLog(settings: Settings, runId: str, sources: list[str], commandName: str, runner) -> int:
    """
    Назначение:
        Обвязка выполнения команды:
        - создаёт логгер (+ файл лога, если задан log_dir)
        - дублирует stdout в лог (tee)
        - гарантирует восстановление stdout и закрытие логгера в finally
    """
    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    originalStdout = sys.stdout
    stdoutLoggerStream = StdStreamToLogger(logger, logging.INFO, runId, "stdout")
    sys.stdout = TeeStream(originalStdout, stdoutLoggerStream)

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        logRunHeader(logger, runId, settings, sources)
        exitCode = runner(logger)
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
        return exitCode
    finally:
        stdoutLoggerStream.flush()
        sys.stdout = originalStdout
        if logFilePath:
            logEvent(logger, logging.DEBUG, runId, "core", f"Log written: {logFilePath}")
        closeCommandLogger(logger)


def runLookupCommand(
    identifiers: list[str],
    options: LookupOptions,
    piped: bool,
    settings: Settings,
    runId: str,
    sources: list[str],
    apiTransport=None,
) -> int:
    def execute(logger) -> int:
        client = buildGraphClient(settings, apiTransport=apiTransport)
        try:
            usecase = LookupUseCase(
                directory=buildDirectory(client),
                presenter=ConsolePresenter(),
                options=options,
                photo_store=FilePhotoStore(settings.photos_dir),
                clipboard=select_clipboard_writer(),
                image_renderer=select_inline_image_renderer(),
                program_name=settings.program_name,
                max_depth=settings.max_depth,
                offer_clipboard=not piped and len(identifiers) == 1 and not options.traverse_tree,
                logger=logger,
                run_id=runId,
            )
            return usecase.run(identifiers)
        finally:
            client.close()

    return runWithLog(settings, runId, sources, "lookup", execute)


@app.command()
def lookup(
    identifiers: list[str] | None = typer.Argument(None, help="Employee ids (UId) or email addresses", show_default=False),
    extended: bool = typer.Option(False, "-x", "-X", help="Show extended information"),
    traverse: bool = typer.Option(False, "-t", "-T", help="Traverse manager tree up to the top"),
    photo: bool = typer.Option(False, "-p", "-P", help="Download and save profile photo"),
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for log files (disabled if omitted)"),
    photosDir: str | None = typer.Option(None, "--photos-dir", help="Directory for downloaded photos"),
    maxDepth: int | None = typer.Option(None, "--max-depth", help="Maximum manager levels to ascend (0 = unlimited)"),
    tenantId: str | None = typer.Option(None, "--tenant-id", help="Entra ID tenant for sign-in"),
    clientId: str | None = typer.Option(None, "--client-id", help="Public client id for interactive sign-in"),
    graphUrl: str | None = typer.Option(None, "--graph-url", help="Graph API base URL"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
):
    """
    Назначение:
        Поиск пользователей в каталоге организации по UId или email.

    Поведение:
        - Нет входных идентификаторов -> usage, exit code 1.
        - -t вместе с пакетным режимом (несколько идентификаторов или stdin) -> exit code 1 без запросов.
        - Ошибка конфигурации -> exit code 2.
        - Иначе exit code 0, даже если отдельные поиски неуспешны.
    """
    inputs = list(identifiers or [])
    piped = is_input_piped(sys.stdin)
    if piped:
        inputs.extend(read_identifiers(sys.stdin))

    if not inputs:
        printUsage()
        raise typer.Exit(code=1)

    try:
        options = LookupOptions(
            extended_info=extended,
            traverse_tree=traverse,
            photo_download=photo,
            batch=piped or len(inputs) > 1,
        )
    except ValueError as exc:
        typer.echo(f"❌ Error: {exc}")
        raise typer.Exit(code=1)

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "photos_dir": photosDir,
        "max_depth": maxDepth,
        "tenant_id": tenantId,
        "client_id": clientId,
        "graph_base_url": graphUrl,
        "timeout_seconds": timeoutSeconds,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
        exitCode = runLookupCommand(
            identifiers=inputs,
            options=options,
            piped=piped,
            settings=loaded.settings,
            runId=runId or generate_run_id(),
            sources=loaded.sources_used,
        )
    except (ValueError, OSError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)
    raise typer.Exit(code=exitCode)
