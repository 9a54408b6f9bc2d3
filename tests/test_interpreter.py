import pytest

from pseudorun import run, ErrorKinds, Value, create_default_interpreter


def lines(*source_lines):
    return "\n".join(source_lines)

def outputs(source, **options):
    result = run(source, **options)
    assert result.error is None, result.error.message
    return list(result.output_lines)

def error_of(source, **options):
    result = run(source, **options)
    assert result.error is not None, "expected the run to fail"
    return result.error


# --- Scenarios ---

def test_hello_world():
    result = run(lines('BEGIN', 'OUTPUT "Hello, World!"', 'END'))
    assert result.output_lines == ("Hello, World!",)
    assert result.error is None
    assert dict(result.final_variables) == {}

def test_for_loop_outputs_counter():
    source = lines('BEGIN', 'FOR I = 1 TO 3 DO', 'OUTPUT I', 'END', 'END')
    result = run(source)
    assert result.output_lines == ("1", "2", "3")
    assert result.final_variables["I"] == Value.number(3)

def test_if_else_takes_then_branch():
    source = lines('BEGIN', 'X = 5', 'IF X > 3 THEN', 'OUTPUT "big"', 'ELSE',
                   'OUTPUT "small"', 'ENDIF', 'END')
    assert outputs(source) == ["big"]

def test_type_mismatch_reports_variable_and_line():
    error = error_of(lines('BEGIN', 'X = 5', 'X = "text"', 'END'))
    assert error.kind == ErrorKinds.TYPE_MISMATCH
    assert "TypeMismatch" in error.message and "'X'" in error.message
    assert error.line_number == 3
    assert error.message.endswith("at line 3")


# --- Statements ---

def test_empty_source():
    result = run("")
    assert result.output_lines == () and result.error is None
    assert dict(result.final_variables) == {}

@pytest.mark.parametrize("keyword", ["OUTPUT", "DISPLAY", "SHOW", "output", "Show"])
def test_output_keywords(keyword):
    assert outputs(lines('BEGIN', f'{keyword} plain words', 'END')) == ["plain words"]

def test_output_undeclared_name_echoes_text():
    assert outputs(lines('BEGIN', 'OUTPUT Y', 'END')) == ["Y"]

def test_output_variable_is_case_insensitive():
    assert outputs(lines('BEGIN', 'total = 2 + 3', 'OUTPUT TOTAL', 'output Total', 'END')) == ["5", "5"]

def test_assignment_expressions():
    source = lines('BEGIN', 'A = 10', 'B = A / 4', 'C = (A + 2) * 3', 'NAME = "Ada"',
                   'GREETING = "Hi " + NAME', 'FLAG = A > 3', 'WORD = hello', 'END')
    result = run(source)
    assert result.error is None
    variables = result.final_variables
    assert variables["B"] == Value.number(2.5)
    assert variables["C"] == Value.number(36)
    assert variables["GREETING"] == Value.text("Hi Ada")
    assert variables["FLAG"] == Value.boolean(True)
    assert variables["WORD"] == Value.text("hello")

def test_self_referencing_assignment():
    source = lines('BEGIN', 'X = 1', 'X = X + 1', 'X = X * 10', 'OUTPUT X', 'END')
    assert outputs(source) == ["20"]

def test_comments_and_blank_lines_are_skipped():
    source = lines('// greeting program', 'BEGIN', '', '   // inner note', 'OUTPUT hi', 'END', '')
    assert outputs(source) == ["hi"]

def test_custom_comment_prefix():
    source = lines('# note', 'BEGIN', 'OUTPUT hi', 'END')
    assert outputs(source, comment_char='#') == ["hi"]

def test_unknown_statement_is_ignored():
    assert outputs(lines('BEGIN', 'PRINTLN nothing', 'OUTPUT done', 'END')) == ["done"]


# --- IF / ELSE ---

def test_if_false_runs_else():
    source = lines('BEGIN', 'X = 1', 'IF X > 3 THEN', 'OUTPUT big', 'ELSE', 'OUTPUT small', 'ENDIF',
                   'OUTPUT after', 'END')
    assert outputs(source) == ["small", "after"]

def test_if_false_without_else():
    source = lines('BEGIN', 'IF 1 > 2 THEN', 'OUTPUT never', 'ENDIF', 'OUTPUT after', 'END')
    assert outputs(source) == ["after"]

def test_nested_if_skipped_by_outer_false():
    source = lines('BEGIN', 'X = 1',
                   'IF X > 5 THEN',
                   '  IF X > 0 THEN', '    OUTPUT inner', '  ELSE', '    OUTPUT inner-else', '  ENDIF',
                   'ELSE', '  OUTPUT outer-else',
                   'ENDIF', 'END')
    assert outputs(source) == ["outer-else"]

def test_nested_if_inside_true_branch():
    source = lines('BEGIN', 'X = 4',
                   'IF X > 1 THEN',
                   '  IF X > 9 THEN', '    OUTPUT nine', '  ELSE', '    OUTPUT small', '  ENDIF',
                   '  OUTPUT still-then',
                   'ELSE', '  OUTPUT outer-else',
                   'ENDIF', 'END')
    assert outputs(source) == ["small", "still-then"]

@pytest.mark.parametrize("source,kind,line", [
    (lines('BEGIN', 'ELSE', 'END'), ErrorKinds.UNEXPECTED_ELSE, 2),
    (lines('BEGIN', 'ENDIF', 'END'), ErrorKinds.UNEXPECTED_ENDIF, 2),
    (lines('BEGIN', 'IF 1 > 2 THEN', 'ELSE', 'ELSE', 'ENDIF', 'END'), ErrorKinds.UNEXPECTED_ELSE, 4),
    (lines('BEGIN', 'IF X >= 1 THEN', 'ENDIF', 'END'), ErrorKinds.UNKNOWN_OPERATOR, 2),
])
def test_if_errors(source, kind, line):
    error = error_of(source)
    assert error.kind == kind
    assert error.line_number == line


# --- FOR ---

def test_for_with_expression_bounds():
    source = lines('BEGIN', 'N = 2', 'FOR K = N - 1 TO N * 2 DO', 'OUTPUT K', 'END', 'END')
    assert outputs(source) == ["1", "2", "3", "4"]

def test_for_body_runs_once_when_start_exceeds_end():
    source = lines('BEGIN', 'FOR I = 5 TO 1 DO', 'OUTPUT I', 'END', 'END')
    assert outputs(source) == ["5"]

def test_nested_for_loops():
    source = lines('BEGIN',
                   'FOR I = 1 TO 2 DO',
                   '  FOR J = 1 TO 2 DO',
                   '    P = I * 10 + J',
                   '    OUTPUT P',
                   '  END',
                   'END',
                   'END')
    assert outputs(source) == ["11", "12", "21", "22"]

def test_begin_block_inside_for_closes_first():
    source = lines('BEGIN', 'FOR I = 1 TO 2 DO', 'BEGIN', 'OUTPUT I', 'END', 'END', 'END')
    assert outputs(source) == ["1", "2"]

def test_for_variable_must_stay_numeric():
    error = error_of(lines('BEGIN', 'I = "a"', 'FOR I = 1 TO 2 DO', 'END', 'END'))
    assert error.kind == ErrorKinds.TYPE_MISMATCH
    assert error.line_number == 3

@pytest.mark.parametrize("header", ['FOR I = 1 TO "x" DO', 'FOR I 1 TO 3 DO'])
def test_bad_for_header(header):
    error = error_of(lines('BEGIN', header, 'END', 'END'))
    assert error.kind == ErrorKinds.INVALID_EXPRESSION
    assert error.line_number == 2


# --- WHILE ---

def test_while_loop():
    source = lines('BEGIN', 'X = 0', 'WHILE X < 3', 'OUTPUT X', 'X = X + 1', 'ENDWHILE', 'OUTPUT done', 'END')
    assert outputs(source) == ["0", "1", "2", "done"]

def test_while_false_skips_body_including_nested_loops():
    source = lines('BEGIN', 'WHILE 1 > 2',
                   '  WHILE 1 < 2', '    OUTPUT never', '  ENDWHILE',
                   'ENDWHILE', 'OUTPUT after', 'END')
    assert outputs(source) == ["after"]

def test_unexpected_endwhile():
    error = error_of(lines('BEGIN', 'ENDWHILE', 'END'))
    assert error.kind == ErrorKinds.UNEXPECTED_ENDWHILE
    assert error.line_number == 2


# --- REPEAT / UNTIL ---

def test_repeat_until():
    source = lines('BEGIN', 'X = 0', 'REPEAT', 'X = X + 1', 'OUTPUT X', 'UNTIL X == 3', 'END')
    assert outputs(source) == ["1", "2", "3"]

def test_repeat_body_runs_at_least_once():
    source = lines('BEGIN', 'REPEAT', 'OUTPUT once', 'UNTIL 1 == 1', 'END')
    assert outputs(source) == ["once"]

def test_runaway_repeat_is_stopped():
    error = error_of(lines('BEGIN', 'REPEAT', 'X = 1', 'UNTIL X == 2', 'END'))
    assert error.kind == ErrorKinds.RUNAWAY_LOOP
    assert error.line_number == 4

def test_runaway_limit_is_configurable():
    source = lines('BEGIN', 'N = 0', 'REPEAT', 'N = N + 1', 'UNTIL N == 5', 'END')
    assert error_of(source, max_repeat_iterations=4).kind == ErrorKinds.RUNAWAY_LOOP
    assert run(source, max_repeat_iterations=5).final_variables["N"] == Value.number(5)

def test_nested_repeat_counts_reset_per_outer_iteration():
    source = lines('BEGIN', 'A = 0',
                   'REPEAT',
                   '  A = A + 1', '  B = 0',
                   '  REPEAT', '    B = B + 1', '  UNTIL B == 600',
                   'UNTIL A == 3',
                   'END')
    result = run(source)
    assert result.error is None
    assert result.final_variables["A"] == Value.number(3)

def test_unexpected_until():
    error = error_of(lines('BEGIN', 'UNTIL X == 1', 'END'))
    assert error.kind == ErrorKinds.UNEXPECTED_UNTIL


# --- Blocks and unclosed constructs ---

def test_unexpected_end():
    error = error_of(lines('BEGIN', 'END', 'END'))
    assert error.kind == ErrorKinds.UNEXPECTED_END
    assert error.line_number == 3

@pytest.mark.parametrize("source,construct,line", [
    (lines('BEGIN', 'OUTPUT x'), "BEGIN", 1),
    (lines('BEGIN', 'IF 1 < 2 THEN', 'OUTPUT x', 'END'), "IF", 2),
    (lines('BEGIN', 'IF 1 > 2 THEN', 'OUTPUT x', 'END'), "IF", 2),
    (lines('BEGIN', 'X = 0', 'WHILE X < 1', 'X = 1', 'END'), "WHILE", 3),
    (lines('BEGIN', 'REPEAT', 'OUTPUT x', 'END'), "REPEAT", 2),
])
def test_unclosed_construct(source, construct, line):
    error = error_of(source)
    assert error.kind == ErrorKinds.UNCLOSED_CONSTRUCT
    assert construct in error.message
    assert error.line_number == line

def test_error_keeps_output_before_failure():
    result = run(lines('BEGIN', 'OUTPUT first', 'X = 1 / 0', 'OUTPUT never', 'END'))
    assert result.output_lines == ("first",)
    assert result.error.kind == ErrorKinds.INVALID_EXPRESSION
    assert result.error.line_number == 3

@pytest.mark.parametrize("statement", ['1X = 3', 'END = 3', 'MY VAR = 1'])
def test_invalid_identifier(statement):
    error = error_of(lines('BEGIN', statement, 'END'))
    assert error.kind == ErrorKinds.INVALID_IDENTIFIER
    assert error.line_number == 2


# --- Properties ---

PROGRAM = lines('BEGIN', 'TOTAL = 0',
                'FOR I = 1 TO 4 DO', '  TOTAL = TOTAL + I', 'END',
                'IF TOTAL == 10 THEN', '  OUTPUT TOTAL', 'ENDIF',
                'END')

def test_runs_are_idempotent():
    first, second = run(PROGRAM), run(PROGRAM)
    assert first.output_lines == second.output_lines == ("10",)
    assert dict(first.final_variables) == dict(second.final_variables)

def test_output_callback_streams_lines():
    seen = []
    run(PROGRAM, output_callback=seen.append)
    assert seen == ["10"]

def test_interpreter_reload_resets_state():
    interpreter = create_default_interpreter()
    interpreter.load_source(PROGRAM)
    interpreter.run_to_completion()
    interpreter.load_source(lines('BEGIN', 'END'))
    interpreter.run_to_completion()
    assert interpreter.get_variables() == {}
    assert interpreter.get_output_lines() == []

def test_result_to_dict():
    data = run(PROGRAM).to_dict()
    assert data["output"] == ["10"]
    assert data["variables"] == {"TOTAL": 10, "I": 4}
    assert data["error"] is None
