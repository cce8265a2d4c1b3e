import io

from colorama import Fore

from spoofing_scanner import ConsoleReporter, ScanResult, render_result


def test_render_not_found():
    text = render_result(ScanResult(domain="a.com"), color=False)

    assert "[*] Domain: a.com" in text
    assert "SPF: [NOT FOUND - VULNERABLE]" in text
    assert "DMARC: [NOT FOUND - VULNERABLE]" in text
    assert "[!] SPOOFING POSSIBLE" in text


def test_render_found_records_with_text():
    result = ScanResult(
        domain="c.com",
        spf_record="v=spf1 -all",
        spf_vulnerable=False,
        dmarc_record="v=DMARC1; p=none",
        dmarc_vulnerable=True,
    )
    lines = render_result(result, color=False).splitlines()

    assert "    SPF: [OK]" in lines
    assert "         v=spf1 -all" in lines
    assert "    DMARC: [VULNERABLE]" in lines
    assert "           v=DMARC1; p=none" in lines
    assert lines[-1] == "    [!] SPOOFING POSSIBLE"


def test_render_safe_domain_has_no_spoofing_marker():
    result = ScanResult("c.com", "v=spf1 -all", False, "v=DMARC1; p=reject", False)

    assert "SPOOFING POSSIBLE" not in render_result(result, color=False)


def test_render_uses_colors():
    text = render_result(ScanResult(domain="a.com"))

    assert Fore.RED in text
    assert Fore.YELLOW in text


def test_console_reporter_writes_block():
    out = io.StringIO()

    ConsoleReporter(out=out, color=False).report(ScanResult(domain="a.com"))

    assert "[*] Domain: a.com" in out.getvalue()
    assert "\x1b[" not in out.getvalue()


def test_console_reporter_defaults_to_stdout(capsys):
    ConsoleReporter(color=False).report(ScanResult(domain="a.com"))

    assert "a.com" in capsys.readouterr().out
