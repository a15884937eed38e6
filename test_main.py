#!/usr/bin/env python3
"""
Test script for the analysis pipeline, report and CLI
"""

from datetime import datetime

import numpy as np
import pytest
from PIL import Image

from errors import DimensionMismatch, UnsupportedFormat
from pixel_grid import to_pixel_grid
from main import (validate_image_file, analyze_image_pair, compute_quality_metrics,
                  generate_analysis_report, main)


def _image_pair():
    y, x = np.mgrid[0:20, 0:20]
    original = np.stack([(4 * x + 2 * y + 5).astype(np.uint8)] * 3, axis=2)
    tampered = original.copy()
    tampered[5:10, 7:12] = 255
    return original, tampered


def test_analysis_results():
    original, tampered = _image_pair()
    results = analyze_image_pair(original, tampered)

    assert results['dimensions'] == (20, 20)
    assert results['tampering_percentage'] == pytest.approx(6.25)
    assert results['detection_mask'].sum() == 25
    assert len(results['tampered_regions']) == 1
    assert results['lbp_analysis']['original_histogram'].sum() == 18 * 18
    assert results['recovery_method'] == 'svd'

    quality = results['quality']
    assert quality['recovered']['psnr'] > quality['tampered']['psnr']
    assert np.array_equal(results['recovered_grid'].samples[~results['detection_mask']],
                          results['tampered_grid'].samples[~results['detection_mask']])


def test_analysis_accepts_pil_images():
    original, tampered = _image_pair()
    results = analyze_image_pair(Image.fromarray(original), Image.fromarray(tampered),
                                 method='interpolation')
    assert results['tampering_percentage'] == pytest.approx(6.25)


def test_errors_are_tagged_with_stage():
    original, _ = _image_pair()
    with pytest.raises(DimensionMismatch) as excinfo:
        analyze_image_pair(original, original[:, :10])
    assert excinfo.value.stage == 'preprocessing'
    assert excinfo.value.kind == 'DimensionMismatch'

    with pytest.raises(UnsupportedFormat) as excinfo:
        analyze_image_pair(original, np.zeros((20, 20, 2), dtype=np.uint8))
    assert excinfo.value.stage == 'preprocessing'


def test_quality_metrics():
    original, tampered = _image_pair()
    a, b = to_pixel_grid(original), to_pixel_grid(tampered)

    same = compute_quality_metrics(a, a)
    assert same['psnr'] == float('inf')
    assert same['ssim'] == pytest.approx(1.0)

    different = compute_quality_metrics(a, b)
    assert np.isfinite(different['psnr'])
    assert different['ssim'] < 1.0

    tiny = to_pixel_grid(np.zeros((2, 2)))
    assert compute_quality_metrics(tiny, tiny)['ssim'] is None


def test_report_contents():
    original, tampered = _image_pair()
    results = analyze_image_pair(original, tampered)
    report = generate_analysis_report(results, analysis_date=datetime(2024, 1, 2, 3, 4, 5))

    assert "Tampering Percentage: 6.25%" in report
    assert "Tampered Regions: 1" in report
    assert "bbox=(7, 5, 5, 5) area=25" in report
    assert "Analysis Date: 2024-01-02 03:04:05" in report
    assert "Methods Used: Gauss-Jordan Elimination, SVD, LBP Histogram" in report


def test_validate_image_file(tmp_path):
    with pytest.raises(ValueError):
        validate_image_file(str(tmp_path / "image.gif"))
    with pytest.raises(FileNotFoundError):
        validate_image_file(str(tmp_path / "missing.png"))


def test_cli_end_to_end(tmp_path, capsys):
    original, tampered = _image_pair()
    original_path = tmp_path / "original.png"
    tampered_path = tmp_path / "tampered.png"
    Image.fromarray(original).save(original_path)
    Image.fromarray(tampered).save(tampered_path)

    assert main([str(original_path), str(tampered_path), '--method', 'interpolation']) == 0
    output = capsys.readouterr().out
    assert "Tampering Percentage: 6.25%" in output


def test_cli_reports_failures(tmp_path, capsys):
    original, _ = _image_pair()
    small_path = tmp_path / "small.png"
    original_path = tmp_path / "original.png"
    Image.fromarray(original).save(original_path)
    Image.fromarray(original[:10, :10]).save(small_path)

    assert main([str(original_path), str(small_path)]) == 1
    assert "DimensionMismatch during preprocessing" in capsys.readouterr().out

    assert main([str(original_path), str(tmp_path / "notes.txt")]) == 1


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
