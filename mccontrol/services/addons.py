"""Mods and plugins folder management beside the server jar."""

from pathlib import Path

from mccontrol.core.errors import UnknownAction
from mccontrol.core.filesystem_utils import delete_jar_file, list_jar_files, save_uploaded_jar

ADDON_FOLDERS = ("mods", "plugins")


def addon_dir(ctx, folder):
    if folder not in ADDON_FOLDERS:
        raise UnknownAction(f"Unknown folder: {folder}")
    return Path(ctx.config_store.get().server_dir) / folder


def list_addons(ctx, folder):
    return list_jar_files(addon_dir(ctx, folder))


def upload_addon(ctx, folder, filename, data_b64):
    """Store a base64 ``.jar`` upload; existing files are never replaced."""
    target = save_uploaded_jar(addon_dir(ctx, folder), filename, data_b64)
    ctx.log_action(f"{folder}-upload", command=target.name)
    return target.name


def delete_addon(ctx, folder, filename):
    delete_jar_file(addon_dir(ctx, folder), filename)
    ctx.log_action(f"{folder}-delete", command=filename)
