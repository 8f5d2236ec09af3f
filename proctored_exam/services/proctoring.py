"""
services/proctoring.py

감독용 카메라 채널. 컨트롤러는 세션 수명 동안 핸들을 쥐고 있다가
종료 시 반드시 돌려줄 뿐, 프레임은 해석하지 않는다.
"""

import logging
from typing import Any

import cv2

from config import CAMERA_INDEX
from proctored_exam.errors import ResourceUnavailable

logger = logging.getLogger(__name__)


class CameraChannel:
    """OpenCV VideoCapture 기반 채널. acquire/release 는 블로킹 호출."""

    def __init__(self, camera_index: int = CAMERA_INDEX):
        self.camera_index = camera_index

    def acquire(self) -> Any:
        try:
            cap = cv2.VideoCapture(self.camera_index)
        except cv2.error as e:
            raise ResourceUnavailable(f"카메라 초기화 실패: {e}") from e
        if not cap.isOpened():
            cap.release()
            raise ResourceUnavailable(f"카메라 {self.camera_index}번을 열 수 없습니다.")
        logger.info(f"카메라 {self.camera_index}번 확보")
        return cap

    def release(self, handle: Any) -> None:
        if handle is None:
            return
        handle.release()
        logger.info(f"카메라 {self.camera_index}번 해제")


class NullChannel:
    """감독 비활성화 설정용. 항상 사용 불가."""

    def acquire(self) -> Any:
        raise ResourceUnavailable("감독 카메라가 비활성화되어 있습니다.")

    def release(self, handle: Any) -> None:
        pass
