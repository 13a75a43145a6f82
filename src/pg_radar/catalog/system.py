"""Operating-system collection catalog, selected by platform."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from pg_radar.catalog.base import CommandSpec, FileSpec, build_command_tasks, build_file_tasks
from pg_radar.collector.models import CollectionTask, TaskCategory

_CPU_SYSFS = "/sys/devices/system/cpu"

LINUX_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("dmesg-t", "system/dmesg_t.out", "dmesg", ("-T",)),
    CommandSpec("hostname", "system/hostname.out", "hostname", ("-f",)),
    CommandSpec("hypervisor", "system/hypervisor.out", "systemd-detect-virt"),
    CommandSpec("ifconfig", "system/ifconfig.out", "ifconfig", ("-a",)),
    CommandSpec("interfaces", "system/interfaces.out", "ip", ("-o", "address")),
    CommandSpec("iostat", "system/iostat.out", "iostat", ("-x", "1", "5")),
    CommandSpec("ip-addr", "system/ip_addr.out", "ip", ("address", "list")),
    CommandSpec("ipcs", "system/ipcs.out", "ipcs", ("-a",)),
    CommandSpec("localectl", "system/localectl.out", "localectl", ("status",)),
    CommandSpec("lsblk", "system/lsblk.out", "lsblk"),
    CommandSpec("lsdevmapper", "system/lsdevmapper.out", "ls", ("-la", "/dev/mapper")),
    CommandSpec("lsmod", "system/lsmod.out", "lsmod"),
    CommandSpec("lspci", "system/lspci.out", "lspci"),
    CommandSpec("mpstat", "system/mpstat.out", "mpstat", ("-P", "ALL", "1", "5")),
    CommandSpec("nfsiostat", "system/nfsiostat.out", "nfsiostat"),
    CommandSpec(
        "openssl-crypto-policies-isapplied",
        "system/openssl/crypto-policies-isapplied.out",
        "update-crypto-policies",
        ("--is-applied",),
    ),
    CommandSpec(
        "openssl-crypto-policies-show",
        "system/openssl/crypto-policies-show.out",
        "update-crypto-policies",
        ("--show",),
    ),
    CommandSpec(
        "openssl-fips-mode-setup",
        "system/openssl/fips-mode-setup.out",
        "fips-mode-setup",
        ("--check",),
    ),
    CommandSpec(
        "packages-apt-list-installed",
        "system/packages-apt-list-installed.out",
        "apt",
        ("list", "--installed", "*postgres*"),
    ),
    CommandSpec(
        "packages-dnf-list-installed",
        "system/packages-dnf-list-installed.out",
        "dnf",
        ("list", "installed", "*postgres*"),
    ),
    CommandSpec("packages-dpkg", "system/packages-dpkg.out", "dpkg", ("-l", "*postgres*")),
    CommandSpec("packages-rpm", "system/packages-rpm.out", "rpm", ("-qa", "*postgres*")),
    CommandSpec(
        "packages-yum-list-installed",
        "system/packages-yum-list-installed.out",
        "yum",
        ("list", "installed", "*postgres*"),
    ),
    CommandSpec("sar", "system/sar.out", "sar", ("-A",)),
    CommandSpec("sestatus", "system/sestatus.out", "sestatus"),
    CommandSpec(
        "systemctl-list-units",
        "system/systemd/list-units.out",
        "systemctl",
        ("list-units", "--all"),
    ),
    CommandSpec("top", "system/top.out", "top", ("-b", "-c", "-w", "512", "-n", "1")),
    CommandSpec("tuned-active", "system/tuned/tuned-active.out", "tuned-adm", ("active",)),
    CommandSpec("tuned-list", "system/tuned/tuned-list.out", "tuned-adm", ("list",)),
    CommandSpec("vmstat-command", "system/vmstat-command.out", "vmstat", ("1", "10")),
    CommandSpec(
        "cpu_scaling_available_governors",
        "system/sys/cpu_scaling_available_governors.out",
        "sh",
        (
            "-c",
            f"cat {_CPU_SYSFS}/cpu*/cpufreq/scaling_available_governors 2>/dev/null | sort -u",
        ),
    ),
    CommandSpec(
        "cpu_scaling_driver",
        "system/sys/cpu_scaling_driver.out",
        "sh",
        ("-c", f"cat {_CPU_SYSFS}/cpu*/cpufreq/scaling_driver 2>/dev/null | sort -u"),
    ),
    CommandSpec(
        "cpu_scaling_governor",
        "system/sys/cpu_scaling_governor.out",
        "sh",
        ("-c", f"cat {_CPU_SYSFS}/cpu*/cpufreq/scaling_governor 2>/dev/null | sort -u"),
    ),
    CommandSpec(
        "energy_perf_bias",
        "system/sys/energy_perf_bias.out",
        "sh",
        ("-c", f"cat {_CPU_SYSFS}/cpu*/power/energy_perf_bias 2>/dev/null | sort -u"),
    ),
    CommandSpec(
        "intel_pstate",
        "system/sys/intel_pstate.out",
        "sh",
        ("-c", f"cat {_CPU_SYSFS}/intel_pstate/* 2>/dev/null"),
    ),
    CommandSpec(
        "io-schedulers",
        "system/io_schedulers.out",
        "sh",
        (
            "-c",
            'for f in /sys/block/*/queue/scheduler; do [ -f "$f" ] && '
            'echo "$(basename $(dirname $(dirname $f))): $(cat $f)"; done',
        ),
    ),
    CommandSpec(
        "read_ahead",
        "system/read_ahead.out",
        "sh",
        ("-c", "blockdev --getra /dev/sd* /dev/nvme* 2>/dev/null"),
    ),
    CommandSpec(
        "transparent_hugepage",
        "system/sys/kernel_mm_transparent_hugepage.out",
        "sh",
        ("-c", "grep -r . /sys/kernel/mm/transparent_hugepage/ 2>/dev/null"),
    ),
)

LINUX_FILES: tuple[FileSpec, ...] = (
    FileSpec("cpuinfo", "system/proc/cpuinfo.out", "/proc/cpuinfo"),
    FileSpec("fstab", "system/fstab.out", "/etc/fstab"),
    FileSpec("limits", "system/limits.out", "/etc/security/limits.conf"),
    FileSpec("locale-conf", "system/locale_conf.out", "/etc/locale.conf"),
    FileSpec("machine-id", "system/machine_id.out", "/etc/machine-id"),
    FileSpec("meminfo", "system/proc/meminfo.out", "/proc/meminfo"),
    FileSpec("os-release", "system/os_release.out", "/etc/os-release"),
    FileSpec("pressure-cpu", "system/proc/pressure_cpu.out", "/proc/pressure/cpu"),
    FileSpec("pressure-io", "system/proc/pressure_io.out", "/proc/pressure/io"),
    FileSpec("pressure-memory", "system/proc/pressure_memory.out", "/proc/pressure/memory"),
    FileSpec("proc-loadavg", "system/proc/loadavg.out", "/proc/loadavg"),
    FileSpec("proc-mounts", "system/proc/mounts.out", "/proc/mounts"),
    FileSpec("proc-uptime", "system/proc/uptime.out", "/proc/uptime"),
    FileSpec("proc-vmstat", "system/proc/vmstat.out", "/proc/vmstat"),
    FileSpec("swaps", "system/proc/swaps.out", "/proc/swaps"),
    FileSpec("system-release", "system/system_release.out", "/etc/system-release"),
)

DARWIN_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("brew-list", "system/packages_brew.out", "brew", ("list", "--versions")),
    CommandSpec(
        "brew-postgres",
        "system/packages_brew_postgres.out",
        "sh",
        ("-c", "brew list --versions | grep -i postgres"),
    ),
    CommandSpec(
        "diskutil-info-all",
        "system/diskutil_info_all.out",
        "sh",
        ("-c", "diskutil list | grep -o '/dev/disk[0-9]*' | xargs -n1 diskutil info"),
    ),
    CommandSpec("diskutil-list", "system/diskutil_list.out", "diskutil", ("list",)),
    CommandSpec("hostname", "system/hostname.out", "hostname"),
    CommandSpec(
        "hypervisor-check",
        "system/hypervisor.out",
        "sh",
        (
            "-c",
            "sysctl kern.hv_vmm_present machdep.cpu.features | grep -i 'hypervisor\\|vmx\\|svm'",
        ),
    ),
    CommandSpec("ifconfig", "system/ifconfig.out", "ifconfig", ("-a",)),
    CommandSpec("iostat", "system/iostat.out", "iostat", ("-c", "5", "-w", "1")),
    CommandSpec("ipcs", "system/ipcs.out", "ipcs", ("-a",)),
    CommandSpec("kextstat", "system/kextstat.out", "kextstat"),
    CommandSpec("launchctl-list", "system/launchctl_list.out", "launchctl", ("list",)),
    CommandSpec("memory-pressure", "system/memory_pressure.out", "memory_pressure"),
    CommandSpec("netstat-interfaces", "system/netstat_interfaces.out", "netstat", ("-i",)),
    CommandSpec("netstat-routing", "system/netstat_routing.out", "netstat", ("-r",)),
    CommandSpec("netstat-stats", "system/netstat_stats.out", "netstat", ("-s",)),
    CommandSpec("pmset-assertions", "system/pmset_assertions.out", "pmset", ("-g", "assertions")),
    CommandSpec("pmset-settings", "system/pmset_settings.out", "pmset", ("-g",)),
    CommandSpec("sysctl-cpu", "system/sysctl_cpu.out", "sysctl", ("-a", "machdep.cpu")),
    CommandSpec("sysctl-hw", "system/sysctl_hw.out", "sysctl", ("-a", "hw")),
    CommandSpec("sysctl-kern", "system/sysctl_kern.out", "sysctl", ("-a", "kern")),
    CommandSpec("sysctl-vm", "system/sysctl_vm.out", "sysctl", ("-a", "vm")),
    CommandSpec(
        "system-log-boot",
        "system/system_log_boot.out",
        "log",
        ("show", "--predicate", "processID == 0", "--last", "boot", "--style", "syslog"),
    ),
    CommandSpec(
        "system-profiler-hardware",
        "system/system_profiler_hardware.out",
        "system_profiler",
        ("SPHardwareDataType",),
    ),
    CommandSpec(
        "system-profiler-network",
        "system/system_profiler_network.out",
        "system_profiler",
        ("SPNetworkDataType",),
    ),
    CommandSpec(
        "system-profiler-pci",
        "system/system_profiler_pci.out",
        "system_profiler",
        ("SPPCIDataType",),
    ),
    CommandSpec(
        "system-profiler-software",
        "system/system_profiler_software.out",
        "system_profiler",
        ("SPSoftwareDataType",),
    ),
    CommandSpec(
        "system-profiler-storage",
        "system/system_profiler_storage.out",
        "system_profiler",
        ("SPStorageDataType",),
    ),
    CommandSpec("top", "system/top.out", "top", ("-l", "1")),
    CommandSpec("ulimit", "system/ulimit.out", "sh", ("-c", "ulimit -a")),
    CommandSpec("vm-stat", "system/vm_stat.out", "vm_stat"),
    CommandSpec("vm-stat-interval", "system/vm_stat_interval.out", "vm_stat", ("-c", "10", "1")),
)

DARWIN_FILES: tuple[FileSpec, ...] = (
    FileSpec("sysctl-conf", "system/sysctl.conf", "/etc/sysctl.conf"),
    FileSpec(
        "system-version",
        "system/system_version.plist",
        "/System/Library/CoreServices/SystemVersion.plist",
    ),
)

SHARED_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("df", "system/diskspace.out", "df", ("-h",)),
    CommandSpec("dmesg", "system/dmesg.out", "dmesg"),
    CommandSpec("locale", "system/locale.out", "locale"),
    CommandSpec("locale-all", "system/locale_all.out", "locale", ("-a",)),
    CommandSpec("mount", "system/mount.out", "mount"),
    CommandSpec("openssl-ciphers", "system/openssl/ciphers.out", "openssl", ("ciphers",)),
    CommandSpec("openssl-engines", "system/openssl/engines.out", "openssl", ("engine",)),
    CommandSpec("openssl-version", "system/openssl/version.out", "openssl", ("version", "-a")),
    CommandSpec("ps", "system/ps.out", "ps", ("auxww",)),
    CommandSpec("uname", "system/uname.out", "uname", ("-a",)),
    CommandSpec("sysctl", "system/sysctl.out", "sysctl", ("-a",)),
)

SHARED_FILES: tuple[FileSpec, ...] = (FileSpec("hosts", "system/hosts.out", "/etc/hosts"),)

_PLATFORM_COMMANDS: dict[str, tuple[CommandSpec, ...]] = {
    "linux": LINUX_COMMANDS,
    "darwin": DARWIN_COMMANDS,
}
_PLATFORM_FILES: dict[str, tuple[FileSpec, ...]] = {
    "linux": LINUX_FILES,
    "darwin": DARWIN_FILES,
}


@dataclass(frozen=True, slots=True)
class SystemCatalog:
    """Command and file specs applicable to one platform."""

    commands: tuple[CommandSpec, ...]
    files: tuple[FileSpec, ...]


def normalize_platform(platform: str) -> str:
    """Map ``sys.platform`` style tags (``linux2``, ``darwin``) to catalog keys."""

    for key in _PLATFORM_COMMANDS:
        if platform.startswith(key):
            return key
    return platform


def system_catalog(platform: str) -> SystemCatalog:
    """Platform-specific specs followed by the cross-platform ones.

    Unknown platforms get the cross-platform part only.
    """

    key = normalize_platform(platform)
    return SystemCatalog(
        commands=_PLATFORM_COMMANDS.get(key, ()) + SHARED_COMMANDS,
        files=_PLATFORM_FILES.get(key, ()) + SHARED_FILES,
    )


def system_tasks(platform: str | None = None) -> list[CollectionTask]:
    """Build system collection tasks for ``platform`` (default: this host)."""

    catalog = system_catalog(platform or sys.platform)
    category = TaskCategory.SYSTEM.value
    return build_command_tasks(category, catalog.commands) + build_file_tasks(
        category,
        catalog.files,
    )
