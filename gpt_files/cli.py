"""Command line entrypoint: ``gpt-files <command> [options]``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from . import __version__
from .clients import AssistantClient, RequestOptions
from .errors import MissingAssistantIdError
from .models import FileDestination
from .orchestrator import Orchestrator
from .settings import Settings, get_settings
from .tables import format_size, format_timestamp, render_table

logger = logging.getLogger(__name__)

OK = "✓"
FAIL = "✗"


def configure_logging(verbose: bool) -> None:
    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s" if verbose else "%(message)s"
    logging.basicConfig(level=logging.INFO, format=fmt, stream=sys.stderr, force=True)
    # httpx logs every request at INFO; only interesting when debugging.
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def resolve_assistant_id(args: argparse.Namespace, settings: Settings) -> str:
    assistant_id = getattr(args, "assistant_id", None) or settings.openai_assistant_id
    if not assistant_id:
        raise MissingAssistantIdError()
    return assistant_id


def _dump(model: Any) -> str:
    return json.dumps(model.model_dump(mode="json"), indent=2, ensure_ascii=False)


def _table(settings: Settings, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    return render_table(headers, rows, max_col_width=settings.table_max_col_width)


def _report_detach(result) -> None:
    for destination, exc in result.failed.items():
        print(f"{FAIL} Failed to detach {result.file_id} from {destination.label}: {exc}", file=sys.stderr)
    if result.ok:
        print(OK, "Detach file successfully")
    else:
        print("Detach incomplete; detached from:", ", ".join(d.label for d in result.detached) or "none")


# ---------------------------------------------------------------------- assistants


async def cmd_create_assistant(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant = await orch.create_assistant(
        args.name,
        args.model or settings.openai_model,
        args.description,
        args.instructions,
        vector_store=args.vector_store,
    )
    print(OK, "Assistant created successfully:")
    print(_dump(assistant))


async def cmd_update_assistant(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant = await orch.update_assistant(
        args.assistant_id,
        name=args.name,
        model=args.model,
        description=args.description,
        instructions=args.instructions,
        vector_store_id=args.vector_store_id,
    )
    print(OK, "Assistant updated successfully:")
    print(_dump(assistant))


async def cmd_del_assistant(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    await orch.delete_assistant(args.assistant_id, args.include_files)
    print(OK, "Assistant deleted successfully")


async def cmd_assistant(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant = await orch.get_assistant(args.assistant_id)
    store_files = await orch.list_vector_store_files(args.assistant_id)
    code_ids = AssistantClient.code_file_ids(assistant)
    height = max(len(store_files), len(code_ids))
    rows = [
        [
            store_files[i].id if i < len(store_files) else "",
            code_ids[i] if i < len(code_ids) else "",
        ]
        for i in range(height)
    ]
    print(_dump(assistant))
    print(_table(settings, ["Vector Store File", "Code File"], rows))


async def cmd_assistants(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistants = await orch.list_assistants()
    rows = [
        [a.id, a.name, a.description, a.model, "\n".join(AssistantClient.vector_store_ids(a))]
        for a in assistants
    ]
    print(_table(settings, ["ID", "Name", "Description", "Model", "Vector Store IDs"], rows))


# ------------------------------------------------------------------- vector stores


async def cmd_create_store(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    store = await orch.create_vector_store(args.name)
    print(OK, "Vector store created:", store.id)


async def cmd_del_store(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    await orch.delete_vector_store(args.vector_store_id)
    print(OK, "Vector store deleted successfully")


async def cmd_store(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    print(_dump(await orch.get_vector_store(args.vector_store_id)))


async def cmd_stores(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    stores = await orch.list_vector_stores()
    rows = [[s.id, s.name, format_timestamp(s.created_at)] for s in stores]
    print(_table(settings, ["ID", "Name", "Created"], rows))


# ---------------------------------------------------------------------------- files


async def cmd_upload(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant_id = resolve_assistant_id(args, settings)
    uploaded = await orch.upload_file(
        args.file_path,
        assistant_id,
        overwrite=args.overwrite,
        destination=args.destination,
        new_file_name=args.file_name,
    )
    print(OK, "File uploaded successfully:", uploaded.id)


async def cmd_upload_dir(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant_id = resolve_assistant_id(args, settings)
    uploaded = await orch.upload_dir(
        args.dir_path,
        assistant_id,
        overwrite=args.overwrite,
        destination=args.destination,
    )
    print(OK, f"Uploaded {len(uploaded)} file(s)")
    if uploaded:
        print(_table(settings, ["File ID", "Filename"], [[f.id, f.filename] for f in uploaded]))


async def cmd_file(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    print(_dump(await orch.get_file(args.file_id)))


async def cmd_delete(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant_id = resolve_assistant_id(args, settings)
    result = await orch.delete_file(args.file_id, assistant_id)
    _report_detach(result)
    print(OK, "Delete file successfully")


async def cmd_detach(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant_id = resolve_assistant_id(args, settings)
    result = await orch.detach_file(args.file_id, assistant_id)
    _report_detach(result)


async def cmd_download(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    target = await orch.download_file(args.file_id, args.new_filename, args.output_dir)
    print(OK, "Download file successfully:", target)


async def cmd_list(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    assistant_id = resolve_assistant_id(args, settings)
    assistant = await orch.get_assistant(assistant_id)
    store_files = await orch.list_vector_store_files(assistant_id)
    file_rows = [
        [
            f.id,
            f.object,
            format_size(f.usage_bytes),
            format_timestamp(f.created_at),
            f.vector_store_id,
            f.status,
        ]
        for f in store_files
    ]
    code_rows = [[file_id] for file_id in AssistantClient.code_file_ids(assistant)]
    print("Vector Store Files")
    print(_table(settings, ["File ID", "Object", "Size", "Created", "Vector Store ID", "Status"], file_rows))
    print()
    print("Code Files")
    print(_table(settings, ["File ID"], code_rows))


async def cmd_files(orch: Orchestrator, args: argparse.Namespace, settings: Settings) -> None:
    files = await orch.list_files()
    rows = [
        [f.id, f.filename, format_size(f.bytes), format_timestamp(f.created_at), f.purpose]
        for f in files
    ]
    print(_table(settings, ["ID", "Filename", "Size", "Created", "Purpose"], rows))


# --------------------------------------------------------------------------- parser


def _add_assistant_id(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-a",
        "--assistant-id",
        help="Assistant id to use instead of the OPENAI_ASSISTANT_ID environment variable.",
    )


def _add_upload_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--overwrite",
        action="store_true",
        help="Delete a previously uploaded file with the same name instead of failing.",
    )
    parser.add_argument(
        "-d",
        "--destination",
        type=FileDestination,
        choices=list(FileDestination),
        metavar="{file,code}",
        default=FileDestination.FILE,
        help="Attach to the vector store ('file') or the code interpreter ('code').",
    )
    _add_assistant_id(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpt-files", description="Manage vector store files for OpenAI assistants."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", default=False, help="Print verbose output.")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    sub = parser.add_subparsers(dest="command", required=True, metavar="<command>")

    def command(name: str, help_text: str, handler) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text, description=help_text, parents=[common])
        cmd.set_defaults(handler=handler)
        return cmd

    cmd = command("create-assistant", "Create a new assistant.", cmd_create_assistant)
    cmd.add_argument("-n", "--name", required=True, help="Name of the assistant.")
    cmd.add_argument("-m", "--model", help="Model for the assistant (default: OPENAI_MODEL or gpt-4o).")
    cmd.add_argument("-d", "--description", help="Description of the assistant.")
    cmd.add_argument("-i", "--instructions", help="Instructions for the assistant.")
    cmd.add_argument(
        "--no-vector-store",
        dest="vector_store",
        action="store_false",
        help="Do not create a vector store for this new assistant.",
    )

    cmd = command("update-assistant", "Update an assistant.", cmd_update_assistant)
    cmd.add_argument("assistant_id")
    cmd.add_argument("-n", "--name", help="Name of the assistant.")
    cmd.add_argument("-m", "--model", help="Model for the assistant.")
    cmd.add_argument("-d", "--description", help="Description of the assistant.")
    cmd.add_argument("-i", "--instructions", help="Instructions for the assistant.")
    cmd.add_argument("-v", "--vector-store-id", help="Vector store to link to the assistant.")

    cmd = command("del-assistant", "Delete an assistant.", cmd_del_assistant)
    cmd.add_argument("assistant_id")
    cmd.add_argument(
        "--include-files",
        action="store_true",
        help="Also delete the vector store and every file attached to it.",
    )

    cmd = command("assistant", "Show the details of an assistant.", cmd_assistant)
    cmd.add_argument("assistant_id")

    command("assistants", "List all assistants.", cmd_assistants)

    cmd = command("create-store", "Create a new vector store.", cmd_create_store)
    cmd.add_argument("name")

    cmd = command("del-store", "Delete a vector store.", cmd_del_store)
    cmd.add_argument("vector_store_id")

    cmd = command("store", "Show the details of a vector store.", cmd_store)
    cmd.add_argument("vector_store_id")

    command("stores", "List all vector stores.", cmd_stores)

    cmd = command("upload", "Upload a file to an assistant.", cmd_upload)
    cmd.add_argument("file_path")
    cmd.add_argument("-n", "--file-name", help="Remote filename to use instead of the local one.")
    _add_upload_options(cmd)

    cmd = command("upload-dir", "Upload all files of a directory to an assistant.", cmd_upload_dir)
    cmd.add_argument("dir_path")
    _add_upload_options(cmd)

    cmd = command("file", "Show the details of a file.", cmd_file)
    cmd.add_argument("file_id")

    cmd = command("delete", "Detach a file from an assistant and delete it permanently.", cmd_delete)
    cmd.add_argument("file_id")
    _add_assistant_id(cmd)

    cmd = command("detach", "Detach a file from an assistant.", cmd_detach)
    cmd.add_argument("file_id")
    _add_assistant_id(cmd)

    cmd = command("download", "Download an uploaded file.", cmd_download)
    cmd.add_argument("file_id")
    cmd.add_argument("-n", "--new-filename", help="Filename to save as (default: the remote filename).")
    cmd.add_argument("--output-dir", default=".", help="Directory to save the file into.")

    cmd = command("list", "List all files attached to an assistant.", cmd_list)
    _add_assistant_id(cmd)

    command("files", "List all files under your OpenAI account.", cmd_files)

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> None:
    options = RequestOptions(
        api_key=settings.require_api_key(),
        base_url=settings.openai_base_url,
        verbose=args.verbose,
        timeout=settings.request_timeout_secs,
    )
    async with Orchestrator(options) as orch:
        await args.handler(orch, args, settings)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        asyncio.run(_run(args, get_settings()))
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"{FAIL} Error: {exc}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
