#!/usr/bin/env python3

"""
Spoofing Scanner - SPF/DMARC Email Spoofing Vulnerability Checker

Author: Spoofing Scanner Contributors
Version: 1.1
License: MIT

Changelog v1.1:
- Per-lookup DNS deadline (--timeout is now enforced on every query)
- Ledger write errors are reported once instead of on every domain
- Ctrl-C stops feeding new domains and drains the ones in flight

Changelog v1.0:
- Threaded SPF/DMARC scan of a domain list
- Vulnerable domains saved progressively to vuln-domains.txt
"""

import argparse
import concurrent.futures
import enum
import logging
import queue
import sys
import threading
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, TextIO, Tuple

import dns.exception
import dns.resolver
from colorama import init, Fore, Style

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 20
DEFAULT_TIMEOUT = 5.0
DEFAULT_QUEUE_SIZE = 100
DEFAULT_LEDGER = "vuln-domains.txt"

SPF_PREFIX = "v=spf1"
DMARC_PREFIX = "v=DMARC1"

# Any of these next to -all still leaves room for spoofing
SPF_WEAK_INDICATORS = ("~all", "+all", "?all", "redirect")


class ScannerError(Exception):
    """Base error for the scanner"""


class InputFileError(ScannerError):
    """Domain list could not be opened; the scan never starts"""

    def __init__(self, path: str, reason: Exception):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot open domain list {path}: {reason}")


@dataclass(frozen=True)
class ScanResult:
    """Per-domain scan result. Empty record means not found (and vulnerable)."""
    domain: str
    spf_record: str = ""
    spf_vulnerable: bool = True
    dmarc_record: str = ""
    dmarc_vulnerable: bool = True

    @property
    def has_spf(self) -> bool:
        return bool(self.spf_record)

    @property
    def has_dmarc(self) -> bool:
        return bool(self.dmarc_record)

    @property
    def vulnerable(self) -> bool:
        return self.spf_vulnerable or self.dmarc_vulnerable


@dataclass(frozen=True)
class ScannerConfig:
    """Process-wide scan settings, read-only once built"""
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_TIMEOUT
    queue_size: int = DEFAULT_QUEUE_SIZE
    ledger_path: str = DEFAULT_LEDGER

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError(f"workers must be a positive integer, got {self.workers}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be a positive integer, got {self.queue_size}")


@dataclass
class ScanSummary:
    """Counters collected by the reporter thread during a run"""
    total: int = 0
    vulnerable: int = 0
    spf_missing: int = 0
    dmarc_missing: int = 0
    duration: float = 0.0
    cancelled: bool = False


def analyze_spf(record: str) -> bool:
    """
    Classify an SPF record.
    Returns True when the record permits spoofing.

    A missing -all is checked first; the weak indicators only matter
    when -all is present somewhere else in the same record.
    """
    record = record.lower()

    if "-all" not in record:
        return True

    for indicator in SPF_WEAK_INDICATORS:
        if indicator in record:
            return True

    return False


def analyze_dmarc(record: str) -> bool:
    """
    Classify a DMARC record.
    Returns True when the policy does not stop spoofed mail.

    The pct check is a plain substring match, so pct=10 and pct=100
    are flagged as well.
    """
    record = record.lower()

    if "p=none" in record:
        return True

    if "p=quarantine" not in record and "p=reject" not in record:
        return True

    if "pct=" in record:
        if "pct=0" in record or "pct=1" in record:
            return True

    return False


class LookupClient:
    """TXT lookups for SPF and DMARC with a hard per-query deadline"""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, resolver=None):
        self.timeout = timeout
        if resolver is None:
            resolver = dns.resolver.Resolver()
            resolver.timeout = timeout
            resolver.lifetime = timeout
        self.resolver = resolver

    def query_txt(self, name: str) -> Optional[List[str]]:
        """TXT strings for name, or None on any resolver failure (no retry)"""
        try:
            answers = self.resolver.resolve(name, 'TXT', lifetime=self.timeout)
        except dns.exception.DNSException as e:
            logger.debug("TXT %s failed: %s", name, str(e) or type(e).__name__)
            return None

        return [b"".join(r.strings).decode("utf-8", errors="replace") for r in answers]

    def _first_with_prefix(self, name: str, prefix: str) -> Tuple[str, bool]:
        txt_records = self.query_txt(name)
        if not txt_records:
            return "", False

        for txt in txt_records:
            if txt.startswith(prefix):
                return txt, True

        return "", False

    def lookup_spf(self, domain: str) -> Tuple[str, bool]:
        """
        Find the SPF record of a domain
        Returns: (spf_record, found)
        """
        return self._first_with_prefix(domain, SPF_PREFIX)

    def lookup_dmarc(self, domain: str) -> Tuple[str, bool]:
        """
        Find the DMARC record published at _dmarc.<domain>
        Returns: (dmarc_record, found)
        """
        return self._first_with_prefix(f"_dmarc.{domain}", DMARC_PREFIX)


class DomainScanner:
    """Single-domain SPF/DMARC evaluation"""

    def __init__(self, lookup: LookupClient):
        self.lookup = lookup

    def scan_domain(self, domain: str) -> ScanResult:
        """Scan a single domain"""
        domain = domain.strip()

        spf_record, found = self.lookup.lookup_spf(domain)
        spf_vulnerable = analyze_spf(spf_record) if found else True

        dmarc_record, found = self.lookup.lookup_dmarc(domain)
        dmarc_vulnerable = analyze_dmarc(dmarc_record) if found else True

        return ScanResult(
            domain=domain,
            spf_record=spf_record,
            spf_vulnerable=spf_vulnerable,
            dmarc_record=dmarc_record,
            dmarc_vulnerable=dmarc_vulnerable,
        )


class VulnerabilitySink:
    """
    Append-only ledger of vulnerable domains, one per line.

    Every record() call is serialized through one lock held only for the
    write. If the ledger cannot be opened the sink is degraded: this is
    logged once here and record() does nothing afterwards.
    """

    def __init__(self, path: str = DEFAULT_LEDGER):
        self.path = path
        self.records = 0
        self.write_errors = 0
        self.open_error: Optional[OSError] = None
        self._lock = threading.Lock()
        try:
            self._file = open(path, 'a', encoding='utf-8')
        except OSError as e:
            logger.warning("Cannot open ledger %s, vulnerable domains will not be saved: %s", path, e)
            self.open_error = e
            self._file = None

    @property
    def degraded(self) -> bool:
        return self.open_error is not None

    @property
    def closed(self) -> bool:
        return self._file is None

    def record(self, domain: str):
        """Save one vulnerable domain"""
        if self._file is None:
            return

        with self._lock:
            if self._file is None:
                return
            try:
                self._file.write(domain + "\n")
                self._file.flush()
                self.records += 1
            except OSError as e:
                self.write_errors += 1
                if self.write_errors == 1:
                    logger.warning("Error saving vulnerable domain %s to %s: %s", domain, self.path, e)
                else:
                    logger.debug("Error saving vulnerable domain %s: %s", domain, e)

    def close(self):
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.close()
            except OSError as e:
                logger.warning("Error closing ledger %s: %s", self.path, e)
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def render_result(result: ScanResult, color: bool = True) -> str:
    """Human-readable block for one scan result"""
    red, green, yellow, reset = ((Fore.RED, Fore.GREEN, Fore.YELLOW, Style.RESET_ALL)
                                 if color else ("", "", "", ""))

    lines = [f"\n[*] Domain: {result.domain}"]

    for label, record, vulnerable in (("SPF", result.spf_record, result.spf_vulnerable),
                                      ("DMARC", result.dmarc_record, result.dmarc_vulnerable)):
        if not record:
            lines.append(f"    {label}: {red}[NOT FOUND - VULNERABLE]{reset}")
            continue
        status, status_color = ("VULNERABLE", red) if vulnerable else ("OK", green)
        lines.append(f"    {label}: {status_color}[{status}]{reset}")
        lines.append(" " * (len(label) + 6) + record)

    if result.vulnerable:
        lines.append(f"    {yellow}[!] SPOOFING POSSIBLE{reset}")

    return "\n".join(lines)


class ConsoleReporter:
    """Prints each result as it arrives"""

    def __init__(self, out: Optional[TextIO] = None, color: bool = True):
        self.out = out
        self.color = color

    def report(self, result: ScanResult):
        print(render_result(result, color=self.color), file=self.out or sys.stdout)


class PipelineState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


# End-of-stream marker for the intake and result queues
_DONE = object()


class ScanPipeline:
    """
    Concurrent scan of a domain list.

    The calling thread feeds the intake queue, config.workers threads scan
    domains into the result queue, and one reporter thread prints results
    and saves vulnerable domains to the sink. Results arrive in completion
    order, not input order.
    """

    def __init__(self, scanner: DomainScanner, reporter, sink: VulnerabilitySink,
                 config: Optional[ScannerConfig] = None):
        self.scanner = scanner
        self.reporter = reporter
        self.sink = sink
        self.config = config or ScannerConfig()
        self.state = PipelineState.IDLE
        self.summary = ScanSummary()
        self._cancel = threading.Event()

    def cancel(self):
        """Stop feeding new domains; in-flight ones still complete"""
        self._cancel.set()

    def scan_file(self, path: str) -> ScanSummary:
        """Scan every non-empty line of a domain list file"""
        try:
            f = open(path, 'r', encoding='utf-8', errors='replace')
        except OSError as e:
            raise InputFileError(path, e) from e

        with f:
            return self.run(f)

    def run(self, domains: Iterable[str]) -> ScanSummary:
        """Scan domains to completion. A pipeline runs only once."""
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline already {self.state.value}, create a new one")

        start_time = time.time()
        workers = self.config.workers
        intake = queue.Queue(maxsize=self.config.queue_size)
        results = queue.Queue(maxsize=self.config.queue_size)

        reporter_thread = threading.Thread(target=self._drain, args=(results,),
                                           name="scan-reporter", daemon=True)
        reporter_thread.start()
        self.state = PipelineState.RUNNING

        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers,
                                                       thread_name_prefix="scan-worker") as executor:
                futures = [executor.submit(self._work, intake, results) for _ in range(workers)]
                try:
                    self._feed(domains, intake)
                except KeyboardInterrupt:
                    # Let in-flight domains finish and reach the ledger
                    self.cancel()
                finally:
                    # One marker per worker closes the intake queue
                    for _ in range(workers):
                        intake.put(_DONE)
                    self.state = PipelineState.DRAINING
                    concurrent.futures.wait(futures)

                for future in futures:
                    error = future.exception()
                    if error is not None:
                        logger.error("Scan worker failed: %r", error, exc_info=error)
        finally:
            # Domain source errors still close the result stream and the ledger
            results.put(_DONE)
            reporter_thread.join()
            self.sink.close()

            self.summary.duration = time.time() - start_time
            self.summary.cancelled = self._cancel.is_set()
            self.state = PipelineState.DONE

        return self.summary

    def _feed(self, domains: Iterable[str], intake: queue.Queue):
        for line in domains:
            if self._cancel.is_set():
                logger.info("Scan cancelled, no more domains queued")
                break
            domain = line.strip()
            if domain:
                intake.put(domain)

    def _work(self, intake: queue.Queue, results: queue.Queue):
        while True:
            domain = intake.get()
            if domain is _DONE:
                return
            try:
                result = self.scanner.scan_domain(domain)
            except Exception:
                logger.exception("Unexpected error scanning %s", domain)
                result = ScanResult(domain=domain)
            results.put(result)

    def _drain(self, results: queue.Queue):
        while True:
            result = results.get()
            if result is _DONE:
                return

            self.summary.total += 1
            if not result.has_spf:
                self.summary.spf_missing += 1
            if not result.has_dmarc:
                self.summary.dmarc_missing += 1

            try:
                self.reporter.report(result)
            except Exception:
                logger.exception("Failed to report result for %s", result.domain)

            if result.vulnerable:
                self.summary.vulnerable += 1
                self.sink.record(result.domain)


def print_summary(summary: ScanSummary, ledger: VulnerabilitySink):
    """Print summary statistics"""
    total = summary.total or 1
    title = "Scan Interrupted - Partial Summary" if summary.cancelled else "Scan Complete - Summary"

    print(f"\n{Fore.GREEN}======================================")
    print(f"{Fore.GREEN}{title}")
    print(f"{Fore.GREEN}======================================{Style.RESET_ALL}\n")
    print(f"Total Domains: {summary.total}")
    print(f"{Fore.RED}Spoofing Possible: {summary.vulnerable} ({summary.vulnerable/total*100:.1f}%){Style.RESET_ALL}")
    print(f"  SPF Not Found: {summary.spf_missing} ({summary.spf_missing/total*100:.1f}%)")
    print(f"  DMARC Not Found: {summary.dmarc_missing} ({summary.dmarc_missing/total*100:.1f}%)")
    print(f"Duration: {summary.duration:.2f} seconds")

    if ledger.degraded:
        print(f"\n{Fore.YELLOW}Vulnerable domains were not saved (ledger unavailable){Style.RESET_ALL}")
    else:
        print(f"\n{Fore.GREEN}[+] Check {ledger.path} for vulnerable domains ({ledger.records} saved){Style.RESET_ALL}")


def main():
    parser = argparse.ArgumentParser(
        description='Spoofing Scanner v1.1 - SPF/DMARC email spoofing vulnerability checker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s subdomains.txt
  %(prog)s subdomains.txt -t 50 --timeout 5
  %(prog)s subdomains.txt -o ./reports/vuln.txt --no-color
"""
    )

    parser.add_argument('domains_file', help='Domain list file (one domain per line)')
    parser.add_argument('-t', '--threads', type=int, default=DEFAULT_WORKERS,
                        help=f'Number of parallel scan threads (default: {DEFAULT_WORKERS})')
    parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT,
                        help=f'DNS lookup timeout in seconds (default: {DEFAULT_TIMEOUT:g})')
    parser.add_argument('-o', '--output', type=str, default=DEFAULT_LEDGER,
                        help=f'File to append vulnerable domains to (default: {DEFAULT_LEDGER})')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging (DNS failures, ledger errors)')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    init(strip=True if args.no_color else None)

    try:
        config = ScannerConfig(workers=args.threads, timeout=args.timeout, ledger_path=args.output)
    except ValueError as e:
        parser.error(str(e))

    print(f"{Fore.GREEN}[+] SPF/DMARC Scanner - Email Spoofing Vulnerability Checker")
    print(f"{Fore.CYAN}[+] Threads: {config.workers}, Timeout: {config.timeout:g}s")
    print(f"{Fore.CYAN}[+] Scanning domains from: {args.domains_file}")
    print(f"{Fore.CYAN}[+] Vulnerable domains will be saved to: {config.ledger_path}{Style.RESET_ALL}")
    print("-" * 60)

    with VulnerabilitySink(config.ledger_path) as sink:
        scanner = DomainScanner(LookupClient(timeout=config.timeout))
        pipeline = ScanPipeline(scanner, ConsoleReporter(color=not args.no_color), sink, config)

        try:
            summary = pipeline.scan_file(args.domains_file)
        except InputFileError as e:
            print(f"{Fore.RED}[-] Error: {e}{Style.RESET_ALL}")
            sys.exit(1)
        except KeyboardInterrupt:
            print(f"\n{Fore.YELLOW}[!] Interrupted{Style.RESET_ALL}")
            sys.exit(130)

        print_summary(summary, sink)

    if summary.cancelled:
        sys.exit(130)


if __name__ == '__main__':
    main()
