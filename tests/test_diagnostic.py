import threading

from sqlfind.core.diagnostic import pick_sample_objects, run_diagnostic
from sqlfind.core.objects import DatabaseObject, ObjectType, ScriptOperation

_PROC = DatabaseObject(name="usp_Report", schema="dbo", type=ObjectType.STORED_PROCEDURE)
_TABLE_A = DatabaseObject(name="A", schema="dbo", type=ObjectType.TABLE)
_TABLE_B = DatabaseObject(name="B", schema="dbo", type=ObjectType.TABLE)
_VIEW = DatabaseObject(name="vA", schema="dbo", type=ObjectType.VIEW)


class _Scripter:
    def script_object(self, operation, obj):
        if operation is ScriptOperation.EXECUTE:
            raise RuntimeError("not a procedure")
        if operation is ScriptOperation.ALTER:
            return None
        return f"-- {operation.name} {obj.qualified_name}"


def test_pick_sample_objects_takes_first_of_each_type_in_type_order():
    samples = pick_sample_objects([_PROC, _TABLE_A, _TABLE_B, _VIEW])

    assert samples == [_TABLE_A, _VIEW, _PROC]


def test_run_diagnostic_records_every_operation():
    progress: list[tuple[int, int, str]] = []

    results = run_diagnostic(
        _Scripter(), [_TABLE_A], on_progress=lambda *args: progress.append(args)
    )

    assert [r.operation for r in results] == list(ScriptOperation)
    by_op = {r.operation: r for r in results}
    assert by_op[ScriptOperation.SELECT].ok
    assert by_op[ScriptOperation.SELECT].script_length == len("-- SELECT [dbo].[A]")
    assert by_op[ScriptOperation.EXECUTE].error == "not a procedure"
    assert by_op[ScriptOperation.ALTER].error == "no script returned"
    assert progress[0] == (0, len(ScriptOperation), "Table: SELECT")
    assert len(progress) == len(ScriptOperation)


def test_run_diagnostic_stops_when_cancelled():
    cancel = threading.Event()
    cancel.set()

    assert run_diagnostic(_Scripter(), [_TABLE_A, _VIEW], cancel=cancel) == []
