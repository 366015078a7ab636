import sys
import unittest
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from orchestra.health import (
    MODULE_IDS,
    CriticalFault,
    Degrade,
    HealthBoard,
    ModuleState,
    Recover,
    module_reducer,
)

TRANSITIONS = {
    ("OK", "DEGRADE"): "DEGRADED",
    ("OK", "RECOVER"): "OK",
    ("OK", "CRITICAL_FAULT"): "ERROR",
    ("DEGRADED", "DEGRADE"): "DEGRADED",
    ("DEGRADED", "RECOVER"): "OK",
    ("DEGRADED", "CRITICAL_FAULT"): "ERROR",
    ("ERROR", "DEGRADE"): "ERROR",
    ("ERROR", "RECOVER"): "OK",
    ("ERROR", "CRITICAL_FAULT"): "ERROR",
}

EVENTS = {"DEGRADE": Degrade(), "RECOVER": Recover(), "CRITICAL_FAULT": CriticalFault()}


class ModuleReducerTests(unittest.TestCase):
    def test_initial_state_is_ok(self):
        self.assertEqual(ModuleState().status, "OK")

    def test_transition_table_is_total(self):
        for (status, event_type), expected in TRANSITIONS.items():
            with self.subTest(status=status, event=event_type):
                result = module_reducer(ModuleState(status=status), EVENTS[event_type])
                self.assertEqual(result.status, expected)

    def test_degrade_does_not_mask_critical_fault(self):
        state = ModuleState(status="ERROR")
        self.assertIs(module_reducer(state, Degrade()), state)

    def test_unknown_event_returns_input_state(self):
        state = ModuleState(status="DEGRADED")

        class Reboot:
            type = "REBOOT"

        self.assertIs(module_reducer(state, Reboot()), state)
        self.assertIs(module_reducer(state, object()), state)

    def test_reducer_does_not_mutate_input(self):
        state = ModuleState(status="OK")
        module_reducer(state, CriticalFault())
        self.assertEqual(state.status, "OK")


class HealthBoardTests(unittest.TestCase):
    def test_all_modules_start_ok(self):
        board = HealthBoard()
        snapshot = board.snapshot()
        self.assertEqual(set(snapshot), set(MODULE_IDS))
        self.assertTrue(all(state.status == "OK" for state in snapshot.values()))

    def test_dispatch_only_touches_target_module(self):
        board = HealthBoard()
        board.dispatch("EXECUTION_KERNEL", Degrade())

        self.assertEqual(board.get("EXECUTION_KERNEL").status, "DEGRADED")
        self.assertEqual(board.get("COMPLIANCE_ENGINE").status, "OK")

    def test_critical_fault_is_logged_as_warning(self):
        board = HealthBoard()
        with self.assertLogs("orchestra.health.board", level="WARNING") as logs:
            board.dispatch("FORENSICS_SERVICE", CriticalFault())
        self.assertIn("FORENSICS_SERVICE: OK -> ERROR", logs.output[0])

    def test_recovery_path(self):
        board = HealthBoard()
        board.dispatch("COMPLIANCE_ENGINE", CriticalFault())
        board.dispatch("COMPLIANCE_ENGINE", Degrade())
        self.assertEqual(board.get("COMPLIANCE_ENGINE").status, "ERROR")
        self.assertEqual(board.dispatch("COMPLIANCE_ENGINE", Recover()).status, "OK")

    def test_unknown_module(self):
        board = HealthBoard()
        self.assertIsNone(board.get("TELEMETRY"))
        with self.assertRaises(KeyError):
            board.dispatch("TELEMETRY", Degrade())


if __name__ == "__main__":
    unittest.main()
