"""실시간 연결 관리 모듈.

WebSocket으로 접속 중인 참가자(피어)를 룸 ID별로 추적합니다. 스토어의
참가자 레코드는 입장 기록일 뿐이고, 현재 접속 여부는 이 레지스트리만 압니다.

Architecture:
    - rooms: Dict[str, Dict[str, Peer]] - 룸 ID → 피어 맵
    - peer_to_room: Dict[str, str] - 피어 ID → 룸 ID (빠른 조회용)

Examples:
    >>> manager = RoomManager()
    >>> manager.join_room("room-1", "peer-123", "Ana", "es", websocket)
    >>> manager.get_room_count("room-1")
    1
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Peer:
    """룸에 접속 중인 피어.

    Attributes:
        peer_id (str): 참가자 ID (스토어의 participant id)
        nickname (str): 표시 이름
        lang (str): 참가자 언어 코드
        websocket: 피어와의 WebSocket 연결 객체
        session: 피어의 RoomSession
    """
    peer_id: str
    nickname: str
    lang: str
    websocket: Any
    session: Any = None


class RoomManager:
    """룸별 접속 피어 레지스트리.

    마지막 피어가 나가면 룸 항목을 지웁니다. 스토어 레코드는 건드리지
    않습니다.
    """

    def __init__(self):
        # room_id -> {peer_id: Peer}
        self.rooms: Dict[str, Dict[str, Peer]] = {}

        # peer_id -> room_id
        self.peer_to_room: Dict[str, str] = {}

        # room_id -> room name (목록 표시용)
        self.room_names: Dict[str, str] = {}

    def join_room(
        self,
        room_id: str,
        peer_id: str,
        nickname: str,
        lang: str,
        websocket,
        session=None,
        room_name: Optional[str] = None,
    ) -> Peer:
        """피어를 룸에 추가합니다. 같은 peer_id로 다시 접속하면 덮어씁니다."""
        if room_id not in self.rooms:
            self.rooms[room_id] = {}
            logger.info(f"Room '{room_id}' opened")
        if room_name:
            self.room_names[room_id] = room_name

        peer = Peer(peer_id=peer_id, nickname=nickname, lang=lang,
                    websocket=websocket, session=session)
        self.rooms[room_id][peer_id] = peer
        self.peer_to_room[peer_id] = room_id

        logger.info(f"Peer '{nickname}' ({peer_id}) joined room '{room_id}'. "
                    f"Room has {len(self.rooms[room_id])} peers")
        return peer

    def leave_room(self, peer_id: str) -> Optional[str]:
        """피어를 룸에서 제거하고 룸 ID를 반환합니다. 모르는 피어면 None."""
        room_id = self.peer_to_room.pop(peer_id, None)
        if not room_id:
            return None

        peers = self.rooms.get(room_id, {})
        peer = peers.pop(peer_id, None)
        if not peers:
            self.rooms.pop(room_id, None)
            self.room_names.pop(room_id, None)
            logger.info(f"Room '{room_id}' closed (empty)")
        elif peer is not None:
            logger.info(f"Peer '{peer.nickname}' ({peer_id}) left room '{room_id}'. "
                        f"Room has {len(peers)} peers")
        return room_id

    def get_room_peers(self, room_id: str) -> List[Peer]:
        return list(self.rooms.get(room_id, {}).values())

    def get_other_peers(self, room_id: str, exclude_peer_id: str) -> List[Peer]:
        """특정 피어를 제외한 룸의 피어 목록 (입장/퇴장 알림용)."""
        return [peer for peer in self.rooms.get(room_id, {}).values()
                if peer.peer_id != exclude_peer_id]

    def get_room_count(self, room_id: str) -> int:
        return len(self.rooms.get(room_id, {}))

    def get_room_list(self) -> List[dict]:
        """접속 중인 룸 목록.

        Returns:
            List[dict]: room_id, room_name, peer_count, peers(peer_id, nickname, lang)
        """
        return [
            {
                "room_id": room_id,
                "room_name": self.room_names.get(room_id),
                "peer_count": len(peers),
                "peers": [{"peer_id": p.peer_id, "nickname": p.nickname, "lang": p.lang}
                          for p in peers.values()],
            }
            for room_id, peers in self.rooms.items()
        ]
