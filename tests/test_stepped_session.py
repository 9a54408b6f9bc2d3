import pytest

from pseudorun import run, run_stepped, SteppedSession, StepStates, ErrorKinds

HELLO = "\n".join(['BEGIN', 'OUTPUT "Hello, World!"', 'END'])

COUNTER = "\n".join(['BEGIN', 'FOR I = 1 TO 3 DO', 'OUTPUT I', 'END', 'END'])


def test_breakpoint_pauses_before_line():
    session = run_stepped(HELLO, breakpoints={1})
    assert session.resume() == StepStates.PAUSED
    assert session.result.output_lines == ()
    assert session.current_line == 1

    assert session.resume() == StepStates.FINISHED
    assert session.result.output_lines == ("Hello, World!",)
    assert session.current_line is None

def test_no_breakpoints_matches_batch_run():
    session = run_stepped(COUNTER)
    assert session.resume() == StepStates.FINISHED
    batch = run(COUNTER)
    assert session.result.output_lines == batch.output_lines
    assert dict(session.result.final_variables) == dict(batch.final_variables)

def test_step_runs_one_statement():
    session = SteppedSession("\n".join(['BEGIN', 'X = 1', 'OUTPUT X', 'END']))
    assert session.current_line == 0
    assert session.step() == StepStates.READY
    assert session.current_line == 1
    session.step()
    assert session.result.output_lines == ()
    session.step()
    assert session.result.output_lines == ("1",)
    assert session.step() == StepStates.FINISHED
    assert session.is_done
    assert session.step() == StepStates.FINISHED

def test_breakpoint_inside_loop_hits_every_iteration():
    session = run_stepped(COUNTER, breakpoints=[2])
    seen = []
    while session.resume() == StepStates.PAUSED:
        seen.append(session.result.output_lines)
    assert seen == [(), ("1",), ("1", "2")]
    assert session.state == StepStates.FINISHED

def test_skipped_lines_are_never_suspension_points():
    source = "\n".join(['BEGIN', '// note', '', 'OUTPUT hi', 'END'])
    session = run_stepped(source, breakpoints=[1, 2])
    assert session.resume() == StepStates.FINISHED
    assert session.result.output_lines == ("hi",)

def test_step_from_pause_executes_breakpoint_line():
    session = run_stepped(HELLO, breakpoints=[1])
    session.step()
    assert session.step() == StepStates.PAUSED
    assert session.step() == StepStates.READY
    assert session.result.output_lines == ("Hello, World!",)

def test_error_ends_session():
    session = run_stepped("\n".join(['BEGIN', 'OUTPUT before', 'X = 1 / 0', 'END']))
    assert session.resume() == StepStates.ERROR
    assert session.error.kind == ErrorKinds.INVALID_EXPRESSION
    assert session.error.line_number == 3
    assert session.result.output_lines == ("before",)
    assert session.step() == StepStates.ERROR

def test_breakpoints_can_change_mid_session():
    session = run_stepped(COUNTER)
    session.step()
    session.add_breakpoint(3)
    assert session.resume() == StepStates.PAUSED
    assert session.current_line == 3
    session.remove_breakpoint(3)
    assert session.resume() == StepStates.FINISHED
    assert session.result.output_lines == ("1", "2", "3")

def test_clear_breakpoints():
    session = run_stepped(COUNTER, breakpoints=[2, 3])
    session.clear_breakpoints()
    assert session.resume() == StepStates.FINISHED

def test_empty_program_is_finished_immediately():
    session = run_stepped("// nothing here\n")
    assert session.state == StepStates.FINISHED
    assert session.current_line is None

def test_to_dict_reports_one_based_lines():
    session = run_stepped(HELLO, breakpoints=[1])
    session.resume()
    data = session.to_dict()
    assert data["state"] == "paused"
    assert data["line"] == 2
    assert data["breakpoints"] == [2]
    assert data["output"] == []
    assert data["error"] is None

def test_output_callback_streams_during_stepping():
    seen = []
    session = run_stepped(COUNTER, output_callback=seen.append)
    session.step()
    session.step()
    session.step()
    assert seen == ["1"]
