"""Boot-chain model: Firmware -> BootManager -> BCD -> Loader -> Kernel."""

from __future__ import annotations

from bootmedic.core.errors import BootStoreReadError
from bootmedic.core.facts.contracts import FactSource
from bootmedic.models.boot import (
    BootEnvironment,
    ChainLink,
    ChainLinkName,
    FirmwareType,
    OSInstallation,
)

CHAIN_ORDER: tuple[ChainLinkName, ...] = (
    ChainLinkName.FIRMWARE,
    ChainLinkName.BOOT_MANAGER,
    ChainLinkName.BCD,
    ChainLinkName.LOADER,
    ChainLinkName.KERNEL,
)


def boot_manager_path(env: BootEnvironment) -> str | None:
    """Path of the boot manager file the firmware hands off to."""
    drive = env.system_partition_drive
    if not drive:
        return None
    if env.firmware_type == FirmwareType.UEFI:
        return f"{drive}\\EFI\\Microsoft\\Boot\\bootmgfw.efi"
    return f"{drive}\\bootmgr"


def build_chain(
    env: BootEnvironment,
    install: OSInstallation,
    facts: FactSource,
    *,
    entry_id: str = "{default}",
) -> list[ChainLink]:
    """Inspect each link of the boot chain, in boot order.

    File stat failures propagate as ProbeExecutionError; an unreadable BCD is
    recorded on the link rather than raised.
    """
    links: list[ChainLink] = []

    firmware_known = env.firmware_type != FirmwareType.UNKNOWN
    links.append(
        ChainLink(
            name=ChainLinkName.FIRMWARE,
            present=firmware_known,
            readable=firmware_known,
            evidence_path=env.firmware_type.value,
        )
    )

    bootmgr = boot_manager_path(env)
    bootmgr_facts = facts.stat(bootmgr) if bootmgr else None
    links.append(
        ChainLink(
            name=ChainLinkName.BOOT_MANAGER,
            present=bool(bootmgr_facts and bootmgr_facts.exists),
            readable=bool(bootmgr_facts and bootmgr_facts.readable),
            evidence_path=bootmgr,
        )
    )

    store = env.boot_store_path
    store_facts = facts.stat(store) if store else None
    bcd_readable = False
    if store and store_facts and store_facts.exists:
        try:
            facts.read_entry(store, entry_id)
            bcd_readable = True
        except BootStoreReadError:
            bcd_readable = False
    links.append(
        ChainLink(
            name=ChainLinkName.BCD,
            present=bool(store_facts and store_facts.exists),
            readable=bcd_readable,
            evidence_path=store,
        )
    )

    loader = install.loader_path(env)
    loader_facts = facts.stat(loader)
    links.append(
        ChainLink(
            name=ChainLinkName.LOADER,
            present=loader_facts.exists and loader_facts.size_bytes > 0,
            readable=loader_facts.readable,
            evidence_path=loader,
        )
    )

    kernel_facts = facts.stat(install.kernel_path)
    links.append(
        ChainLink(
            name=ChainLinkName.KERNEL,
            present=kernel_facts.exists and kernel_facts.size_bytes > 0,
            readable=kernel_facts.readable,
            evidence_path=install.kernel_path,
        )
    )

    return links


def chain_broken(links: list[ChainLink]) -> bool:
    """A chain is broken when any required link is missing."""
    return any(link.broken for link in links)
