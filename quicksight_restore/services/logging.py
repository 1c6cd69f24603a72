"""
Logging service for QuickSight restore operations.
"""

import logging
import logging.handlers
import json
from datetime import datetime
from typing import Dict, Any, List, Optional
from pathlib import Path

from ..models.config import RestoreConfig
from ..models.deployment import DeploymentResult, DeploymentStatus


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured logging with JSON output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'context') and record.context:
            log_data['context'] = record.context

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ProgressTracker:
    """Tracks progress of a batch of deployments."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.current_operation: Optional[str] = None
        self.total_items: int = 0
        self.processed_items: int = 0
        self.failed_items: int = 0
        self.start_time: Optional[datetime] = None

    def start_operation(self, operation_name: str, total_items: int = 0) -> None:
        """Start tracking a new operation."""
        self.current_operation = operation_name
        self.total_items = total_items
        self.processed_items = 0
        self.failed_items = 0
        self.start_time = datetime.now()

        self.logger.info(
            f"Starting operation: {operation_name}",
            extra={'context': {
                'operation': operation_name,
                'total_items': total_items,
                'start_time': self.start_time.isoformat()
            }}
        )

    def update_progress(self, processed: int = 1, failed: int = 0) -> None:
        """Update progress counters."""
        self.processed_items += processed
        self.failed_items += failed

        context = {
            'operation': self.current_operation,
            'processed': self.processed_items,
            'failed': self.failed_items
        }
        if self.total_items > 0:
            progress_percent = (self.processed_items / self.total_items) * 100
            context.update({'total': self.total_items, 'progress_percent': progress_percent})
            self.logger.info(
                f"Progress: {self.processed_items}/{self.total_items} ({progress_percent:.1f}%)",
                extra={'context': context}
            )
        else:
            self.logger.info(
                f"Processed: {self.processed_items}, Failed: {self.failed_items}",
                extra={'context': context}
            )

    def complete_operation(self) -> Dict[str, Any]:
        """Complete the current operation and return summary."""
        end_time = datetime.now()
        duration = (end_time - self.start_time).total_seconds() if self.start_time else 0

        summary = {
            'operation': self.current_operation,
            'total_items': self.total_items,
            'processed_items': self.processed_items,
            'failed_items': self.failed_items,
            'success_rate': ((self.processed_items - self.failed_items) / max(self.processed_items, 1)) * 100,
            'duration_seconds': duration,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': end_time.isoformat()
        }

        self.logger.info(
            f"Completed operation: {self.current_operation}",
            extra={'context': summary}
        )

        return summary


class LoggingService:
    """Logging and reporting service for QuickSight restore operations."""

    def __init__(self, config: RestoreConfig):
        """
        Initialize the logging service.

        Args:
            config: Restore configuration containing logging settings
        """
        self.config = config
        self.logger = self._setup_logger()
        self.progress_tracker = ProgressTracker(self.logger)
        self.operation_history: List[Dict[str, Any]] = []

    def _setup_logger(self) -> logging.Logger:
        """Set up the package logger with a rotating JSON file handler and a console handler."""
        logger = logging.getLogger('quicksight_restore')
        logger.setLevel(getattr(logging, self.config.logging_level.upper()))

        logger.handlers.clear()

        log_path = Path(self.config.logging_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            self.config.logging_file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(console_handler)

        return logger

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log an info message with optional context."""
        self.logger.info(message, extra={'context': context or {}})

    def start_batch(self, operation_name: str, total_items: int = 0) -> None:
        self.progress_tracker.start_operation(operation_name, total_items)

    def complete_batch(self) -> Dict[str, Any]:
        summary = self.progress_tracker.complete_operation()
        self.operation_history.append(summary)
        return summary

    def generate_deployment_report(self, results: List[DeploymentResult]) -> Dict[str, Any]:
        """
        Summarize a set of deployment results.

        Args:
            results: Deployment results, in execution order

        Returns:
            Dict[str, Any]: Report with a ``summary`` block and per-deployment entries
        """
        counts = {status.value: 0 for status in DeploymentStatus}
        for result in results:
            counts[result.status.value] += 1

        total = len(results)
        successful = sum(1 for r in results if r.success)
        start_time = min((r.start_time for r in results), default=None)
        end_time = max((r.end_time for r in results), default=None)

        summary = {
            'total_deployments': total,
            'successful_deployments': successful,
            'failed_deployments': total - successful,
            'success_rate': (successful / total * 100) if total else 0.0,
            'status_counts': {k: v for k, v in counts.items() if v},
            'total_duration_ms': sum(r.duration_ms for r in results),
            'start_time': start_time.isoformat() if start_time else None,
            'end_time': end_time.isoformat() if end_time else None
        }

        self.log_info("Deployment report generated", context=summary)

        return {
            'summary': summary,
            'deployments': [r.to_dict() for r in results],
            'operation_history': self.operation_history,
            'generated_at': datetime.now().isoformat()
        }

    def save_deployment_report(self, report: Dict[str, Any], output_path: Optional[str] = None) -> str:
        """
        Save a deployment report to a JSON file.

        Args:
            report: Report produced by generate_deployment_report
            output_path: Optional custom output path

        Returns:
            str: Absolute path to the saved report file
        """
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = f"restore_report_{timestamp}.json"

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, default=str)

        self.log_info(
            f"Deployment report saved to {output_path}",
            context={'report_path': str(output_file.absolute())}
        )

        return str(output_file.absolute())

    def close(self) -> None:
        """Close all logging handlers and clean up resources."""
        for handler in self.logger.handlers:
            handler.close()
        self.logger.handlers.clear()
