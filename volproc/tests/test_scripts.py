"""
Test the volproc_otsu and volproc_transform command line programs

usage

pytest -v test_scripts.py
"""
import numpy as np
import pytest
import SimpleITK as sitk

from volproc.scripts import volproc_otsu, volproc_transform
from . import two_plateau_array, write_volume


@pytest.fixture
def no_file_access(monkeypatch):
    """Fail the test if a volume is read or written"""
    def fail(*args, **kwargs):
        raise AssertionError('file access attempted')

    monkeypatch.setattr(sitk, 'ReadImage', fail)
    monkeypatch.setattr(sitk, 'WriteImage', fail)


def test_otsu_no_arguments(no_file_access):
    with pytest.raises(SystemExit) as e:
        volproc_otsu.main([])
    assert e.value.code != 0


@pytest.mark.parametrize('argv', [
    [],
    ['in.nrrd', 'out.nrrd', '0', '0', '0', '1', '0', '0'],  # 8 arguments
    ['in.nrrd', 'out.nrrd', '0', '0', '0', '1', '0', '0', '0', '0'],  # 10 arguments
])
def test_transform_wrong_argument_count(argv, no_file_access):
    with pytest.raises(SystemExit) as e:
        volproc_transform.main(argv)
    assert e.value.code != 0


def test_transform_non_numeric_argument(no_file_access):
    with pytest.raises(SystemExit) as e:
        volproc_transform.main(['in.nrrd', 'out.nrrd', 'ten', '0', '0', '1', '0', '0', '0'])
    assert e.value.code == 2


def test_otsu_end_to_end(tmp_path, capsys):
    in_path = write_volume(tmp_path / 'in.nrrd', two_plateau_array(50, 200))
    out_path = tmp_path / 'out' / 'otsu.nrrd'

    assert volproc_otsu.main([str(in_path), '-o', str(out_path)]) == 0

    assert 'Threshold = 124' in capsys.readouterr().out
    out = sitk.GetArrayFromImage(sitk.ReadImage(str(out_path)))
    assert set(np.unique(out)) == {0, 255}
    assert np.all(out[:4] == 0)
    assert np.all(out[4:] == 255)


def test_otsu_default_output_path(tmp_path, monkeypatch):
    in_path = write_volume(tmp_path / 'in.nrrd', two_plateau_array())
    work_dir = tmp_path / 'work'
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)

    assert volproc_otsu.main([str(in_path)]) == 0
    assert (tmp_path / 'Output_Images' / 'otsu_threshold_image.img').is_file()


def test_otsu_missing_input(tmp_path):
    assert volproc_otsu.main([str(tmp_path / 'missing.nrrd'), '-o', str(tmp_path / 'out.nrrd')]) == 1
    assert not (tmp_path / 'out.nrrd').exists()


def test_otsu_ignore_errors(tmp_path):
    argv = [str(tmp_path / 'missing.nrrd'), '-o', str(tmp_path / 'out.nrrd'), '--ignore-errors']
    assert volproc_otsu.main(argv) == 0


def test_otsu_write_failure(tmp_path):
    in_path = write_volume(tmp_path / 'in.nrrd', two_plateau_array())
    blocker = tmp_path / 'not_a_dir'
    blocker.write_text('')

    assert volproc_otsu.main([str(in_path), '-o', str(blocker / 'out.nrrd')]) == 1


def test_otsu_config_file(tmp_path):
    in_path = write_volume(tmp_path / 'in.nrrd', two_plateau_array(50, 200))
    out_path = tmp_path / 'otsu.nrrd'
    cfg = tmp_path / 'otsu.toml'
    cfg.write_text(f'inside_value = 255\noutside_value = 0\noutput_path = "{out_path.as_posix()}"\n')

    assert volproc_otsu.main([str(in_path), '-c', str(cfg)]) == 0

    out = sitk.GetArrayFromImage(sitk.ReadImage(str(out_path)))
    assert np.all(out[:4] == 255)
    assert np.all(out[4:] == 0)


def test_otsu_bad_config(tmp_path):
    cfg = tmp_path / 'otsu.toml'
    cfg.write_text('insde_value = 255\n')

    with pytest.raises(SystemExit) as e:
        volproc_otsu.main([str(tmp_path / 'in.nrrd'), '-c', str(cfg)])
    assert e.value.code == 2


def test_transform_end_to_end(tmp_path):
    arr = np.zeros((4, 4, 4), dtype=np.uint8)
    arr[2, 2, 2] = 200
    in_path = write_volume(tmp_path / 'in.nrrd', arr)
    out_path = tmp_path / 'out.nrrd'

    argv = [str(in_path), str(out_path), '0', '0', '0', '1', '1', '0', '0']
    assert volproc_transform.main(argv) == 0

    out = sitk.GetArrayFromImage(sitk.ReadImage(str(out_path))).astype(int)
    assert abs(out[2, 2, 3] - 200) <= 2


def test_transform_identity_parameters_copy_input(tmp_path):
    rng = np.random.default_rng(3)
    arr = rng.integers(0, 256, size=(5, 5, 5)).astype(np.uint8)
    in_path = write_volume(tmp_path / 'in.nrrd', arr, spacing=(0.5, 0.5, 0.5), origin=(1.0, 1.0, 1.0))
    out_path = tmp_path / 'out.nrrd'

    assert volproc_transform.main([str(in_path), str(out_path), '0', '0', '0', '1', '0', '0', '0']) == 0

    out = sitk.ReadImage(str(out_path))
    assert np.array_equal(sitk.GetArrayFromImage(out), arr)
    assert np.allclose(out.GetSpacing(), (0.5, 0.5, 0.5))
    assert np.allclose(out.GetOrigin(), (1.0, 1.0, 1.0))


def test_transform_last_wins_option(tmp_path):
    arr = np.zeros((5, 5, 5), dtype=np.uint8)
    arr[2, 2, 3] = 200
    in_path = write_volume(tmp_path / 'in.nrrd', arr)
    out_path = tmp_path / 'out.nrrd'

    argv = [str(in_path), str(out_path), '0', '0', '0', '2', '0', '1', '0',
            '--policy', 'last_wins', '--interpolator', 'nearest']
    assert volproc_transform.main(argv) == 0

    out = sitk.GetArrayFromImage(sitk.ReadImage(str(out_path)))
    assert out[2, 3, 3] == 200


def test_transform_missing_input(tmp_path):
    argv = [str(tmp_path / 'missing.nrrd'), str(tmp_path / 'out.nrrd'), '0.1', '0', '0', '1', '0', '0', '0']
    assert volproc_transform.main(argv) == 1


def test_transform_write_failure(tmp_path):
    in_path = write_volume(tmp_path / 'in.nrrd', np.zeros((4, 4, 4)))
    blocker = tmp_path / 'not_a_dir'
    blocker.write_text('')

    argv = [str(in_path), str(blocker / 'out.nrrd'), '0', '0', '0', '1', '1', '0', '0']
    assert volproc_transform.main(argv) == 1


def test_transform_singular_scale(tmp_path):
    in_path = write_volume(tmp_path / 'in.nrrd', np.zeros((4, 4, 4)))
    argv = [str(in_path), str(tmp_path / 'out.nrrd'), '0', '0', '0', '0', '0', '0', '0']
    assert volproc_transform.main(argv) == 1


def test_otsu_ignores_extra_arguments(tmp_path):
    in_path = write_volume(tmp_path / 'in.nrrd', two_plateau_array())
    out_path = tmp_path / 'otsu.nrrd'

    assert volproc_otsu.main([str(in_path), 'extra', '-o', str(out_path)]) == 0
    assert out_path.is_file()


def test_otsu_config_not_a_table(tmp_path):
    cfg = tmp_path / 'otsu.yaml'
    cfg.write_text('- inside_value\n')

    with pytest.raises(SystemExit) as e:
        volproc_otsu.main([str(tmp_path / 'in.nrrd'), '-c', str(cfg)])
    assert e.value.code == 2
