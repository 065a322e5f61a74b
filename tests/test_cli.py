#!/usr/bin/env -S python3 -B -u
"""
Test suite for the routex command-line interface.

Commands are parsed with the real argument parser and run against a
RouteManager wired to in-memory collaborators, so nothing touches the
host routing table or the operator's configuration.
"""

import unittest
import sys
import os
import json
import tempfile
import shutil
from io import StringIO
from contextlib import redirect_stdout, redirect_stderr
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.exceptions import ErrorCode, InvalidDestinationError
from src.core.phantom import MemoryPhantomRouteStore, PhantomRouteReconciler
from src.core.route_manager import RouteManager
from src.executors.route_executor import ExecutionOutcome
from src.route_cli import build_parser, main, route_from_args, run
from src.core.models import RouteType


LISTING = """Routing tables

Internet:
Destination        Gateway            Flags        Netif Expire
default            192.168.1.1        UGScg          en0
127                127.0.0.1          UCS            lo0
10.8/16            192.168.1.254      UGS            en0
"""


class StaticListing:
    def fetch(self):
        return LISTING


class NoDetails:
    def query(self, destination):
        return "route: writing to routing socket: not in table"


class QueuedExecutor:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def execute(self, args):
        self.calls.append(list(args))
        return self.outcomes.pop(0) if self.outcomes else ExecutionOutcome(0, "")


class CLITestCase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, 'routex.yaml')
        with open(self.config_file, 'w') as f:
            f.write("executor:\n  route_command: /sbin/route\n")
        self.executor = QueuedExecutor()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def manager(self):
        reconciler = PhantomRouteReconciler(MemoryPhantomRouteStore(), NoDetails())
        return RouteManager(StaticListing(), self.executor, reconciler)

    def invoke(self, *argv):
        args = build_parser().parse_args(['--no-color', '-c', self.config_file] + list(argv))
        args.verbose_level = args.verbose
        stdout = StringIO()
        with redirect_stdout(stdout):
            code = run(args, manager=self.manager())
        return code, stdout.getvalue()


class TestParser(unittest.TestCase):

    def test_route_from_args(self):
        args = build_parser().parse_args(
            ['add', '172.16', '10.0.0.1', '--type', 'host', '--blackhole', '--static']
        )
        route = route_from_args(args)
        self.assertEqual(route.route_type, RouteType.HOST)
        self.assertEqual(route.flags, "Sb")
        self.assertEqual(route.gateway, "10.0.0.1")

    def test_type_help_lists_each_route_type(self):
        stdout = StringIO()
        with redirect_stdout(stdout):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(['add', '--help'])
        help_text = " ".join(stdout.getvalue().split())
        self.assertIn("Force host route", help_text)
        self.assertIn("0.0.0.0/0 for the default route", help_text)

    def test_gateway_is_optional(self):
        args = build_parser().parse_args(['delete', '10.8/16'])
        self.assertEqual(args.gateway, '')

    def test_command_required(self):
        with redirect_stderr(StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args([])


class TestInspectionCommands(CLITestCase):

    def test_interpret_valid(self):
        code, output = self.invoke('interpret', '172.1')
        self.assertEqual(code, ErrorCode.SUCCESS)
        self.assertIn("As network:   172.1.0.0/16", output)
        self.assertIn("As host:      172.0.0.1/32", output)

    def test_interpret_invalid(self):
        code, output = self.invoke('interpret', '300.1')
        self.assertEqual(code, ErrorCode.INVALID_INPUT)
        self.assertIn("octets must be 0-255", output)

    def test_interpret_json(self):
        code, output = self.invoke('interpret', '10.1.2.3', '-j')
        data = json.loads(output)
        self.assertTrue(data['valid'])
        self.assertEqual(data['type'], 'host')
        self.assertEqual(data['host_form'], '10.1.2.3/32')

    def test_trace_logging_at_highest_verbosity(self):
        with self.assertLogs('src.route_cli', level='DEBUG') as logs:
            code, _ = self.invoke('-vvv', 'interpret', '10')
        self.assertEqual(code, ErrorCode.SUCCESS)
        self.assertTrue(any("[TRACE] Parsed command line" in line for line in logs.output))

    def test_classify(self):
        code, output = self.invoke('classify', 'en0', '-j')
        self.assertEqual(code, ErrorCode.SUCCESS)
        data = json.loads(output)
        self.assertEqual(data['type'], 'interface')
        self.assertEqual(data['modifier'], '-interface')


class TestListCommand(CLITestCase):

    def test_list_text(self):
        code, output = self.invoke('list')
        self.assertEqual(code, ErrorCode.SUCCESS)
        lines = output.splitlines()
        self.assertTrue(lines[0].startswith("Destination"))
        self.assertTrue(lines[1].startswith("10.8/16"))
        self.assertIn("3 routes (2 editable, 1 system)", output)

    def test_list_search_json(self):
        code, output = self.invoke('list', '-s', '10.8.3', '-j')
        data = json.loads(output)
        self.assertEqual([route['destination'] for route in data['routes']], ['10.8/16', 'default'])
        self.assertEqual(data['search'], {'term': '10.8.3', 'type': 'Class C network (/24)'})


class TestMutationCommands(CLITestCase):

    def test_dry_run_prints_command(self):
        code, output = self.invoke('add', '10.1.2/24', '192.168.1.1', '-i', 'en0', '--static', '--dry-run')
        self.assertEqual(code, ErrorCode.SUCCESS)
        self.assertEqual(output.strip(), "/sbin/route add -net -static 10.1.2.0/24 192.168.1.1 -ifscope en0")
        self.assertEqual(self.executor.calls, [])

    def test_dry_run_rejects_invalid_input(self):
        with self.assertRaises(InvalidDestinationError):
            self.invoke('add', '10.1.2.0/40', '192.168.1.1', '--dry-run')

    def test_add_success(self):
        code, output = self.invoke('add', '10.1.2/24', '192.168.1.1', '--mtu', '1400')
        self.assertEqual(code, ErrorCode.SUCCESS)
        self.assertEqual(self.executor.calls, [["add", "-mtu", "1400", "-net", "10.1.2.0/24", "192.168.1.1"]])
        self.assertTrue(output.startswith("OK: /sbin/route add"))

    def test_failure_categories_map_to_exit_codes(self):
        cases = [
            (ExecutionOutcome(1, "route: writing to routing socket: File exists"), ErrorCode.COMMAND_FAILED),
            (ExecutionOutcome(1, "execution error: User canceled. (-128)"), ErrorCode.CANCELLED),
            (ExecutionOutcome(1, "sudo: a password is required"), ErrorCode.PERMISSION_ERROR),
        ]
        for outcome, expected in cases:
            self.executor = QueuedExecutor(outcome)
            code, output = self.invoke('delete', '10.8/16', '192.168.1.254')
            self.assertEqual(code, expected, outcome.output)
            self.assertTrue(output.startswith("Failed ("))

    def test_invalid_route_exit_code(self):
        code, output = self.invoke('add', '10.1.2.0/24')
        self.assertEqual(code, ErrorCode.INVALID_INPUT)
        self.assertIn("Destination and gateway are required", output)


class TestMain(unittest.TestCase):

    @patch('src.route_cli.colorama.init')
    def test_configuration_error_is_reported(self, mock_init):
        temp_dir = tempfile.mkdtemp()
        try:
            broken = os.path.join(temp_dir, 'broken.yaml')
            with open(broken, 'w') as f:
                f.write("executor: [unclosed\n")
            stderr = StringIO()
            with redirect_stderr(stderr), redirect_stdout(StringIO()):
                code = main(['-c', broken, 'interpret', '10'])
            self.assertEqual(code, ErrorCode.CONFIGURATION_ERROR)
            self.assertIn("Error:", stderr.getvalue())
        finally:
            shutil.rmtree(temp_dir)


if __name__ == '__main__':
    unittest.main()
