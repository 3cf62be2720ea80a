'''
Command line tests, through -e expressions
'''

from typedrpn.cli import CLI


def run(capsys, *args):
    CLI().run(args=list(args))
    return capsys.readouterr()


def test_expression(capsys):
    out, err = run(capsys, '-e', '5', '3', '+')
    assert out.splitlines()[-4:] == ['T: 0', 'Z: 0', 'Y: 0', 'X: 8']
    assert err == ''


def test_two_numbers_on_a_line(capsys):
    out, _ = run(capsys, '-e', '5 3 *')
    assert out.splitlines()[-1] == 'X: 15'


def test_conversion(capsys):
    out, _ = run(capsys, '-e', "1500 'm' 'km'")
    assert out.splitlines()[-1] == 'X: 1.5 km'


def test_rejected(capsys):
    out, err = run(capsys, '-e', "5 'm' 3 'sec' +")
    assert 'Rejected +' in err
    assert out.splitlines()[-2:] == ['Y: 5 m', 'X: 3 sec']


def test_memory(capsys):
    out, _ = run(capsys, '-m', '-e', "2 'kg' sto")
    assert out.splitlines()[-1] == 'M0 2 kg'


def test_catalog(capsys):
    out, _ = run(capsys, '-C', '-e')
    assert any(line.split('\t')[2] == 'km' for line in out.splitlines())


def test_dump(capsys):
    out, _ = run(capsys, '-D', '-e', '12 sqrt')
    lines = out.splitlines()
    assert lines[1].split('\t') == ['number', "'12'", '0:KEY1 0:KEY2']
    assert lines[2].split('\t') == ['word', "'sqrt'", '4:SQRT']
