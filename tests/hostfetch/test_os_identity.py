import json
import tempfile
import unittest
from pathlib import Path
from typing import List, Optional, Sequence

from hostfetch.detection.os_identity import OSIdentityResolver, SourcePaths
from hostfetch.detection.os_vendor import pve_version_from_output
from hostfetch.trace.trace_emitter import TraceEmitter
from hostfetch.trace.trace_store_jsonl import TraceStoreJSONL


def _no_command(argv: Sequence[str]) -> Optional[str]:
    raise AssertionError("unexpected command: {}".format(list(argv)))


class _Commands:
    def __init__(self, output: Optional[str]):
        self.output = output
        self.calls: List[List[str]] = []

    def __call__(self, argv: Sequence[str]) -> Optional[str]:
        self.calls.append(list(argv))
        return self.output


class TestOSIdentityResolver(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.trace_path = self.root / "_trace" / "trace.jsonl"

    def tearDown(self) -> None:
        self._td.cleanup()

    def _write(self, rel: str, text: str) -> Path:
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p

    def _resolver(self, environ=None, run_command=_no_command, **kwargs) -> OSIdentityResolver:
        trace = TraceEmitter(store=TraceStoreJSONL(self.trace_path), run_id="run_test")
        return OSIdentityResolver(
            SourcePaths(self.root),
            environ=environ if environ is not None else {},
            run_command=run_command,
            trace=trace,
            **kwargs,
        )

    def _events(self) -> List[dict]:
        if not self.trace_path.exists():
            return []
        return [json.loads(l) for l in self.trace_path.read_text(encoding="utf-8").splitlines() if l.strip()]

    def _parsed_paths(self) -> List[str]:
        return [e["data"]["path"] for e in self._events() if e["event_type"] == "source_parsed"]

    def test_ubuntu_end_to_end_without_flavour_hint(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Ubuntu 22.04.3 LTS"\nNAME="Ubuntu"\nID=ubuntu\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "ubuntu")
        self.assertEqual(rec.name, "Ubuntu")
        self.assertEqual(rec.pretty_name, "Ubuntu 22.04.3 LTS")
        self.assertEqual(rec.id_like, "")

    def test_debian_from_fallback_only(self) -> None:
        self._write("usr/lib/os-release", "ID=debian\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "debian")
        self.assertEqual(rec.name, "")
        self.assertEqual(rec.pretty_name, "")
        self.assertEqual(rec.version, "")
        self.assertEqual(rec.version_id, "")

    def test_empty_root_gives_empty_record(self) -> None:
        rec = self._resolver().resolve()
        self.assertEqual(rec.to_dict(), {k: "" for k in rec.to_dict()})
        finished = [e for e in self._events() if e["event_type"] == "resolution_finished"]
        self.assertEqual(len(finished), 1)
        self.assertFalse(finished[0]["data"]["usable"])

    def test_mx_short_circuits_before_os_release(self) -> None:
        self._write("etc/lsb-release", 'DISTRIB_ID=MX\nDISTRIB_RELEASE=23.1\nDISTRIB_DESCRIPTION="MX 23.1 Libretto"\n')
        os_release = self._write("etc/os-release", 'PRETTY_NAME="Debian GNU/Linux 12"\nNAME="Debian"\nID=debian\nVERSION_ID="12"\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "MX")
        self.assertEqual(rec.name, "MX")
        self.assertEqual(rec.id_like, "debian")
        self.assertEqual(rec.pretty_name, "MX 23.1 Libretto")
        self.assertEqual(rec.version_id, "")
        self.assertNotIn(str(os_release), self._parsed_paths())

    def test_mx_match_is_case_insensitive(self) -> None:
        self._write("etc/lsb-release", "DISTRIB_ID=mx\n")
        self._write("etc/os-release", "NAME=Debian\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.name, "MX")
        self.assertEqual(rec.id_like, "debian")

    def test_rolling_version_is_cleared(self) -> None:
        self._write("etc/lsb-release", 'DISTRIB_ID="Arch"\nDISTRIB_RELEASE="rolling"\nDISTRIB_DESCRIPTION="Arch Linux"\n')
        self._write("etc/os-release", 'NAME="Arch Linux"\nPRETTY_NAME="Arch Linux"\nID=arch\nBUILD_ID=rolling\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.version, "")
        self.assertNotIn("rolling", [rec.version, rec.version_id])
        self.assertEqual(rec.id, "Arch")
        self.assertEqual(rec.name, "Arch Linux")
        self.assertEqual(rec.build_id, "rolling")

    def test_os_release_never_overwrites_lsb_values(self) -> None:
        self._write("etc/lsb-release", 'DISTRIB_ID=Foo\nDISTRIB_DESCRIPTION="Foo Desc"\nDISTRIB_RELEASE=1.0\n')
        self._write("etc/os-release", 'ID=bar\nNAME="Bar"\nPRETTY_NAME="Bar OS"\nVERSION="2.0"\nVERSION_ID=2\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "Foo")
        self.assertEqual(rec.pretty_name, "Foo Desc")
        self.assertEqual(rec.version, "1.0")
        self.assertEqual(rec.name, "Bar")
        self.assertEqual(rec.version_id, "2")

    def test_usable_primary_skips_fallback(self) -> None:
        self._write("etc/os-release", 'ID=fedora\nNAME="Fedora Linux"\nPRETTY_NAME="Fedora Linux 39"\n')
        fallback = self._write("usr/lib/os-release", "VARIANT=Workstation\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.variant, "")
        self.assertNotIn(str(fallback), self._parsed_paths())

    def test_partial_primary_falls_back(self) -> None:
        self._write("etc/os-release", "ID=foo\n")
        self._write("usr/lib/os-release", 'ID=other\nNAME=Foo\nPRETTY_NAME="Foo OS"\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "foo")
        self.assertEqual(rec.name, "Foo")
        self.assertEqual(rec.pretty_name, "Foo OS")

    def test_bedrock_escape_hatch(self) -> None:
        self._write("bedrock/etc/bedrock-release", "Bedrock Linux 0.7.30 Poki\n")
        self._write("bedrock/etc/os-release", 'NAME="Bedrock Linux"\nID=bedrock\nVERSION_ID=0.7.30\n')
        lsb = self._write("etc/lsb-release", "DISTRIB_ID=MX\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "bedrock")
        self.assertEqual(rec.name, "Bedrock")
        self.assertEqual(rec.pretty_name, "Bedrock Linux")
        self.assertEqual(rec.version_id, "0.7.30")
        self.assertNotIn(str(lsb), self._parsed_paths())

    def test_bedrock_without_nested_os_release_continues_cascade(self) -> None:
        self._write("bedrock/etc/bedrock-release", "Bedrock Linux 0.7.30 Poki\n")
        self._write("etc/os-release", 'ID=arch\nNAME="Arch Linux"\nVERSION_ID=rolling-1\n')
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "bedrock")
        self.assertEqual(rec.name, "Bedrock")
        self.assertEqual(rec.version_id, "rolling-1")

    def test_bedrock_disabled(self) -> None:
        self._write("bedrock/etc/bedrock-release", "Bedrock Linux 0.7.30 Poki\n")
        self._write("etc/os-release", 'ID=arch\nNAME="Arch Linux"\nPRETTY_NAME="Arch Linux"\n')
        rec = self._resolver(escape_bedrock=False).resolve()
        self.assertEqual(rec.id, "arch")

    def test_custom_os_release_path_replaces_cascade(self) -> None:
        custom = self._write("opt/release", 'ID=custom\nNAME="Custom"\nDISTRIB_CODENAME=zeta\n')
        self._write("etc/os-release", 'PRETTY_NAME="Other"\n')
        rec = self._resolver(os_release_path=custom).resolve()
        self.assertEqual(rec.id, "custom")
        self.assertEqual(rec.name, "Custom")
        self.assertEqual(rec.codename, "zeta")
        self.assertEqual(rec.pretty_name, "")

    def test_ubuntu_flavour_kde_checked_before_xfce(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Ubuntu 24.04 LTS"\nNAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\n')
        env = {"XDG_CONFIG_DIRS": "/etc/xdg/xdg-xfce:/usr/share/kde-settings/kde-profile"}
        rec = self._resolver(environ=env).resolve()
        self.assertEqual(rec.name, "Kubuntu")
        self.assertEqual(rec.pretty_name, "Kubuntu")
        self.assertEqual(rec.id, "kubuntu")
        self.assertEqual(rec.id_like, "ubuntu")

    def test_ubuntu_flavour_xubuntu(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Ubuntu 24.04 LTS"\nNAME="Ubuntu"\nID=Ubuntu\n')
        rec = self._resolver(environ={"XDG_CONFIG_DIRS": "/etc/xdg/xdg-xubuntu:/etc/xdg"}).resolve()
        self.assertEqual(rec.name, "Xubuntu")
        self.assertEqual(rec.id, "xubuntu")

    def test_ubuntu_flavour_order_for_single_desktops(self) -> None:
        cases = {
            "/etc/xdg/xdg-lubuntu": ("Lubuntu", "lubuntu"),
            "/etc/xdg/xdg-budgie-desktop": ("Ubuntu Budgie", "ubuntu-budgie"),
            "/etc/xdg/xdg-cinnamon": ("Ubuntu Cinnamon", "ubuntu-cinnamon"),
            "/etc/xdg/xdg-mate": ("Ubuntu MATE", "ubuntu-mate"),
            "/etc/xdg/xdg-ubuntustudio": ("Ubuntu Studio", "ubuntu-studio"),
            "/etc/xdg/xdg-sway": ("Ubuntu Sway", "ubuntu-sway"),
            "/etc/xdg/xdg-touch": ("Ubuntu Touch", "ubuntu-touch"),
        }
        self._write("etc/os-release", 'PRETTY_NAME="Ubuntu"\nNAME="Ubuntu"\nID=ubuntu\n')
        for dirs, (name, os_id) in cases.items():
            with self.subTest(dirs=dirs):
                rec = self._resolver(environ={"XDG_CONFIG_DIRS": dirs}).resolve()
                self.assertEqual(rec.name, name)
                self.assertEqual(rec.id, os_id)

    def test_ubuntu_without_match_is_unchanged(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Ubuntu 24.04 LTS"\nNAME="Ubuntu"\nID=ubuntu\n')
        rec = self._resolver(environ={"XDG_CONFIG_DIRS": "/etc/xdg/xdg-ubuntu:/etc/xdg"}).resolve()
        self.assertEqual(rec.id, "ubuntu")
        self.assertEqual(rec.name, "Ubuntu")

    def test_armbian(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Armbian 24.2.1 bookworm"\nNAME="Debian GNU/Linux"\nID=debian\nVERSION_ID="12"\n')
        self._write("etc/debian_version", "12.5\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.id, "armbian")
        self.assertEqual(rec.name, "Armbian")
        self.assertEqual(rec.id_like, "debian")
        self.assertEqual(rec.version_id, "24.2.1")
        self.assertEqual(rec.version, "")

    def test_proxmox(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\nNAME="Debian GNU/Linux"\nID=debian\nVERSION_ID="12"\n')
        self._write("usr/bin/pveversion", "#!/bin/sh\n")
        cmds = _Commands("pve-manager/8.2.2/9355359cd7afbae4 (running kernel: 6.8.4-2-pve)\n")
        rec = self._resolver(run_command=cmds).resolve()
        self.assertEqual(cmds.calls, [[str(self.root / "usr/bin/pveversion")]])
        self.assertEqual(rec.id, "pve")
        self.assertEqual(rec.name, "Proxmox VE")
        self.assertEqual(rec.id_like, "debian")
        self.assertEqual(rec.version_id, "8.2.2")
        self.assertEqual(rec.pretty_name, "Proxmox VE 8.2.2")

    def test_proxmox_command_failure_falls_back_to_debian_version(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\nNAME="Debian GNU/Linux"\nID=debian\nVERSION_ID="12"\n')
        self._write("usr/bin/pveversion", "#!/bin/sh\nexit 1\n")
        self._write("etc/debian_version", "12.5  \n")
        rec = self._resolver(run_command=_Commands(None)).resolve()
        self.assertEqual(rec.id, "debian")
        self.assertEqual(rec.name, "Debian GNU/Linux")
        self.assertEqual(rec.version, "12.5")
        self.assertEqual(rec.version_id, "12.5")
        self.assertIn("command_failed", [e["event_type"] for e in self._events()])

    def test_debian_version_file(self) -> None:
        self._write("etc/os-release", 'PRETTY_NAME="Debian GNU/Linux trixie/sid"\nNAME="Debian GNU/Linux"\nID=debian\n')
        self._write("etc/debian_version", "trixie/sid\n")
        rec = self._resolver().resolve()
        self.assertEqual(rec.version, "trixie/sid")
        self.assertEqual(rec.version_id, "trixie/sid")

    def test_pve_version_extraction(self) -> None:
        self.assertEqual(pve_version_from_output("pve-manager/8.2.2/9355359cd7afbae4 (running kernel: 6.8.4-2-pve)"), "8.2.2")
        self.assertEqual(pve_version_from_output("pve-manager/7.4-3"), "pve-manager")
        self.assertEqual(pve_version_from_output("garbage"), "garbage")


if __name__ == "__main__":
    unittest.main()
