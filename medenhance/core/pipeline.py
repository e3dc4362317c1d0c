import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .codec import DecoderRegistry, encode_png
from .contrast import ContrastEnhancer
from .metrics import MetricsEstimator, RandomMetricsEstimator
from .noise_reduction import NoiseReducer
from .raster import RasterBuffer
from .resizer import Resizer
from .sharpening import Sharpener
from ..utils.image_utils import (
    calculate_image_metrics, classify_error, ImageProcessingError, ValidationError,
    DecodeFailure, RenderTargetUnavailable, EnhancementCancelled, StageFailure
)
from ..utils.logging_config import get_logger
from ..configs.processing_config import EnhancementConfig
from ..configs.settings import Settings, get_settings

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]
BatchProgressCallback = Callable[[int, int], None]
ImageInput = Union[RasterBuffer, bytes, str, Path]

# Progress reported once each stage has finished
RESIZE_DONE = 30
NOISE_REDUCTION_DONE = 50
CONTRAST_DONE = 70
SHARPENING_DONE = 90
COMPLETE = 100

# Milestones only reported when the pipeline decodes the input itself
STARTED = 10
DECODED = 20


@dataclass
class EnhancementResult:
    enhanced_image: bytes
    processing_time_ms: float
    quality_score: float
    interpretability_score: float
    insights: List[str]
    width: int
    height: int
    was_resized: bool
    processing_steps: List[str] = field(default_factory=list)
    original_metrics: Dict[str, Any] = field(default_factory=dict)
    final_metrics: Dict[str, Any] = field(default_factory=dict)
    image: Optional[RasterBuffer] = field(default=None, repr=False, compare=False)


@dataclass
class BatchEnhancementResult:
    results: List[Optional[EnhancementResult]]
    errors: List[Optional[str]]

    @property
    def successful_count(self) -> int:
        return sum(1 for result in self.results if result is not None)

    @property
    def failed_count(self) -> int:
        return sum(1 for error in self.errors if error is not None)

    @property
    def total_processing_time_ms(self) -> float:
        return sum(result.processing_time_ms for result in self.results if result is not None)


class EnhancementPipeline:
    """Medical image enhancement: resize, denoise, contrast, sharpen

    Stages always run in that order on a buffer owned by the pipeline for the
    duration of the call. Independent calls share no pixel state and may run
    concurrently.
    """

    def __init__(self, config: Optional[EnhancementConfig] = None,
                 metrics_estimator: Optional[MetricsEstimator] = None,
                 decoders: Optional[DecoderRegistry] = None):
        self.config = config or EnhancementConfig()
        self.metrics_estimator = metrics_estimator or RandomMetricsEstimator()
        self.decoders = decoders or DecoderRegistry.default(self.config.ACCEPTED_EXTENSIONS)

        self.resizer = Resizer(self.config)
        self.noise_reducer = NoiseReducer(self.config)
        self.contrast_enhancer = ContrastEnhancer(self.config)
        self.sharpener = Sharpener(self.config)

        self._stats_lock = threading.Lock()
        self.stats = self._empty_statistics()

        logger.info(f"EnhancementPipeline initialized with config: {self.config}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      metrics_estimator: Optional[MetricsEstimator] = None) -> "EnhancementPipeline":
        """Pipeline configured from application settings (environment and .env)"""
        return cls(EnhancementConfig.from_settings(settings or get_settings()), metrics_estimator)

    def enhance(self, image: RasterBuffer,
                on_progress: Optional[ProgressCallback] = None,
                cancel_event: Optional[threading.Event] = None) -> EnhancementResult:
        """
        Enhance a decoded image

        Args:
            image: Decoded input; it is copied, never modified
            on_progress: Called with 30, 50, 70, 90 and 100 as stages finish
            cancel_event: When set, the run stops at the next stage boundary

        Returns:
            Encoded enhanced image with its quality metrics

        Raises:
            ImageProcessingError: Any failure; no partial image is returned
        """
        return self._process(lambda: image, time.perf_counter(), on_progress, cancel_event, "raster")

    def enhance_bytes(self, data: bytes, filename: Optional[str] = None,
                      on_progress: Optional[ProgressCallback] = None,
                      cancel_event: Optional[threading.Event] = None) -> EnhancementResult:
        """
        Decode ``data`` with the decoder registered for ``filename`` and enhance it

        Progress additionally reports 10 on entry and 20 once decoded.
        """
        return self._decode_and_process(lambda: data, filename, on_progress, cancel_event)

    def enhance_file(self, path: Union[str, Path],
                     on_progress: Optional[ProgressCallback] = None,
                     cancel_event: Optional[threading.Event] = None) -> EnhancementResult:
        """Read an image file and enhance it"""
        path = Path(path)

        def read() -> bytes:
            try:
                return path.read_bytes()
            except OSError as e:
                raise DecodeFailure(f"Could not read image file {path}: {e.strerror or e}") from e

        return self._decode_and_process(read, path.name, on_progress, cancel_event)

    def _decode_and_process(self, read: Callable[[], bytes], filename: Optional[str],
                            on_progress: Optional[ProgressCallback],
                            cancel_event: Optional[threading.Event]) -> EnhancementResult:
        start_time = time.perf_counter()

        def load() -> RasterBuffer:
            self._check_cancelled(cancel_event, "decode")
            self._report(on_progress, STARTED)
            image = self.decoders.decode(read(), filename)
            self._report(on_progress, DECODED)
            return image

        return self._process(load, start_time, on_progress, cancel_event, filename or "bytes")

    def enhance_many(self, inputs: Sequence[ImageInput],
                     on_progress: Optional[BatchProgressCallback] = None,
                     max_workers: Optional[int] = None) -> BatchEnhancementResult:
        """
        Enhance several images with independent pipeline runs

        ``on_progress`` receives (input index, percent). A failure of one
        input is recorded in ``errors`` and does not stop the others.
        """
        if not inputs:
            raise ValidationError("No images provided for enhancement")
        if len(inputs) > self.config.MAX_BATCH_FILES:
            raise ValidationError(
                f"At most {self.config.MAX_BATCH_FILES} images can be enhanced at once, got {len(inputs)}"
            )

        logger.info(f"Enhancing {len(inputs)} images")
        results: List[Optional[EnhancementResult]] = [None] * len(inputs)
        errors: List[Optional[str]] = [None] * len(inputs)

        def run(index: int):
            item_progress = None
            if on_progress is not None:
                def item_progress(percent: int):
                    on_progress(index, percent)
            try:
                results[index] = self._enhance_input(inputs[index], item_progress)
            except ImageProcessingError as e:
                errors[index] = str(e)

        workers = max(1, min(max_workers or self.config.WORKERS, len(inputs)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for future in [executor.submit(run, index) for index in range(len(inputs))]:
                future.result()

        batch = BatchEnhancementResult(results, errors)
        logger.info(f"Batch enhancement completed: {batch.successful_count} successful, "
                    f"{batch.failed_count} failed")
        return batch

    def _enhance_input(self, item: ImageInput,
                       on_progress: Optional[ProgressCallback]) -> EnhancementResult:
        if isinstance(item, RasterBuffer):
            return self.enhance(item, on_progress)
        if isinstance(item, (bytes, bytearray)):
            return self.enhance_bytes(bytes(item), on_progress=on_progress)
        if isinstance(item, (str, Path)):
            return self.enhance_file(item, on_progress)
        raise ValidationError(f"Unsupported input type: {type(item).__name__}")

    def _process(self, load: Callable[[], RasterBuffer], start_time: float,
                 on_progress: Optional[ProgressCallback],
                 cancel_event: Optional[threading.Event], source: str) -> EnhancementResult:
        with self._stats_lock:
            self.stats['total_processed'] += 1
        logger.log_processing_start("enhancement", {'source': source})

        try:
            original = load()
            result = self._execute_pipeline(original, start_time, on_progress, cancel_event)
        except ImageProcessingError as e:
            self._record_failure(e, self._elapsed_ms(start_time), source)
            raise
        except MemoryError as e:
            error = RenderTargetUnavailable("Not enough memory to process image")
            self._record_failure(error, self._elapsed_ms(start_time), source)
            raise error from e
        except Exception as e:
            error = StageFailure("enhancement", e)
            self._record_failure(error, self._elapsed_ms(start_time), source)
            raise error from e

        self._record_success(result.processing_time_ms)
        logger.log_processing_end("enhancement", True, result.processing_time_ms / 1000.0, {
            'source': source,
            'size': f"{result.width}x{result.height}",
        })
        if result.processing_time_ms > 0:
            megapixels = result.width * result.height / 1e6
            logger.log_performance_metric("throughput", megapixels / (result.processing_time_ms / 1000.0), "MP/s")
        return result

    def _execute_pipeline(self, original: RasterBuffer, start_time: float,
                          on_progress: Optional[ProgressCallback],
                          cancel_event: Optional[threading.Event]) -> EnhancementResult:
        """Run every stage in order on a private copy of ``original``"""
        if not isinstance(original, RasterBuffer):
            raise ValidationError(f"Expected a RasterBuffer, got {type(original).__name__}")
        steps: List[str] = []

        self._check_cancelled(cancel_event, "resize")
        current = self._run_stage(1, "resize", original, lambda: self.resizer.resize(original), steps)
        was_resized = current is not original
        if not was_resized:
            # The caller keeps ownership of the buffer it passed in
            current = current.copy()
        original_metrics = calculate_image_metrics(current.data)
        self._report(on_progress, RESIZE_DONE)

        self._check_cancelled(cancel_event, "noise_reduction")
        current = self._run_stage(2, "noise_reduction", current,
                                  lambda: self.noise_reducer.reduce_noise(current), steps)
        self._report(on_progress, NOISE_REDUCTION_DONE)

        self._check_cancelled(cancel_event, "contrast_enhancement")
        current = self._run_stage(3, "contrast_enhancement", current,
                                  lambda: self.contrast_enhancer.enhance_contrast(
                                      current, self.config.CONTRAST_FACTOR), steps)
        self._report(on_progress, CONTRAST_DONE)

        self._check_cancelled(cancel_event, "sharpening")
        current = self._run_stage(4, "sharpening", current,
                                  lambda: self.sharpener.sharpen(current), steps)
        self._report(on_progress, SHARPENING_DONE)

        self._check_cancelled(cancel_event, "encode")
        encoded = encode_png(current, self.config.PNG_COMPRESSION)
        final_metrics = calculate_image_metrics(current.data)
        estimate = self.metrics_estimator.estimate(original, current)
        self._log_improvements(original_metrics, final_metrics)

        processing_time_ms = self._elapsed_ms(start_time)
        self._report(on_progress, COMPLETE)

        return EnhancementResult(
            enhanced_image=encoded,
            processing_time_ms=processing_time_ms,
            quality_score=estimate.quality_score,
            interpretability_score=estimate.interpretability_score,
            insights=list(estimate.insights),
            width=current.width,
            height=current.height,
            was_resized=was_resized,
            processing_steps=steps,
            original_metrics=original_metrics,
            final_metrics=final_metrics,
            image=current,
        )

    def _run_stage(self, step_number: int, stage: str, image: RasterBuffer,
                   run: Callable[[], RasterBuffer], steps: List[str]) -> RasterBuffer:
        if self.config.LOG_PROCESSING_STEPS:
            logger.log_stage(step_number, stage, image.width, image.height)
        try:
            result = run()
        except ImageProcessingError:
            raise
        except MemoryError as e:
            raise RenderTargetUnavailable(f"Not enough memory for {stage}") from e
        except Exception as e:
            raise StageFailure(stage, e) from e
        steps.append(stage)
        return result

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], next_stage: str):
        if cancel_event is not None and cancel_event.is_set():
            raise EnhancementCancelled(f"Enhancement cancelled before {next_stage}")

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], percent: int):
        if on_progress is not None:
            on_progress(percent)

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000.0

    @staticmethod
    def _log_improvements(original_metrics: Dict, final_metrics: Dict):
        for metric in ['mean_brightness', 'contrast', 'sharpness', 'noise_level']:
            change = final_metrics[metric] - original_metrics[metric]
            logger.debug(f"{metric}: {original_metrics[metric]:.2f} -> "
                         f"{final_metrics[metric]:.2f} ({change:+.2f})")

    @staticmethod
    def _empty_statistics() -> Dict[str, Any]:
        return {
            'total_processed': 0,
            'successful_processed': 0,
            'average_processing_time_ms': 0.0,
            'total_processing_time_ms': 0.0,
            'error_count': 0,
            'errors_by_type': {},
            'last_error': None
        }

    def _record_success(self, processing_time_ms: float):
        with self._stats_lock:
            self.stats['successful_processed'] += 1
            self.stats['total_processing_time_ms'] += processing_time_ms
            self.stats['average_processing_time_ms'] = (
                self.stats['total_processing_time_ms'] / self.stats['successful_processed']
            )

    def _record_failure(self, error: ImageProcessingError, elapsed_ms: float, source: str):
        error_type = classify_error(error)
        logger.log_processing_end("enhancement", False, elapsed_ms / 1000.0, {'source': source})
        logger.log_error_with_context(error, {
            'source': source,
            'error_type': error_type.value,
            'elapsed_ms': f"{elapsed_ms:.1f}",
        })
        with self._stats_lock:
            self.stats['error_count'] += 1
            counts = self.stats['errors_by_type']
            counts[error_type.value] = counts.get(error_type.value, 0) + 1
            self.stats['last_error'] = str(error)

    def get_processing_statistics(self) -> Dict[str, Any]:
        """Counters for every enhancement attempted by this pipeline"""
        with self._stats_lock:
            stats = dict(self.stats)
            stats['errors_by_type'] = dict(self.stats['errors_by_type'])

        if stats['total_processed'] > 0:
            stats['success_rate'] = stats['successful_processed'] / stats['total_processed']
            stats['error_rate'] = stats['error_count'] / stats['total_processed']
        else:
            stats['success_rate'] = 0.0
            stats['error_rate'] = 0.0

        return stats

    def reset_statistics(self):
        with self._stats_lock:
            self.stats = self._empty_statistics()
        logger.info("Processing statistics reset")
