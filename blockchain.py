import hashlib
import json
import logging
import os
import time

from errors import LedgerError

logger = logging.getLogger(__name__)


class Block:
    def __init__(self, index, timestamp, previous_hash, events, hash=None):
        self.index = index
        self.timestamp = timestamp
        self.events = events
        self.previous_hash = previous_hash
        self.hash = hash or self.calculate_hash()

    def header(self):
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "events": self.events,
            "previous_hash": self.previous_hash,
        }

    def calculate_hash(self):
        # Hash covers everything but the hash itself
        content = json.dumps(self.header(), sort_keys=True).encode()
        return hashlib.sha256(content).hexdigest()

    def to_dict(self):
        return dict(self.header(), hash=self.hash)


class Blockchain:
    """
    Append-only audit ledger of engine events.

    Events are queued by record() and sealed into a hash-linked block by
    mine_block(). With a filename the chain is written to JSON after each block.
    """

    def __init__(self, filename=None):
        self.filename = filename
        self.chain = []
        self.pending_events = []
        if self.filename and os.path.exists(self.filename):
            self.load_chain()
        else:
            self.create_genesis_block()

    def create_genesis_block(self):
        genesis_block = Block(0, time.time(), "0", [])
        self.chain.append(genesis_block)
        self.save_chain()

    def record(self, event_type, payload):
        self.pending_events.append({
            'event': event_type,
            'payload': dict(payload),
            'timestamp': time.time()
        })

    def mine_block(self):
        if not self.pending_events:
            return False

        new_block = Block(
            index=len(self.chain),
            timestamp=time.time(),
            previous_hash=self.chain[-1].hash,
            events=self.pending_events
        )
        self.chain.append(new_block)
        try:
            self.save_chain()
        except Exception:
            # Unwritten blocks never become part of the chain
            self.chain.pop()
            raise
        self.pending_events = []
        logger.debug("sealed block %d with %d events", new_block.index, len(new_block.events))
        return True

    def discard_pending(self):
        self.pending_events = []

    def events(self, event_type=None):
        found = []
        for block in self.chain[1:]:
            for event in block.events:
                if event_type is None or event.get("event") == event_type:
                    found.append(event)
        return found

    def is_valid(self):
        for i, block in enumerate(self.chain):
            if block.index != i or block.hash != block.calculate_hash():
                return False
            if i > 0 and block.previous_hash != self.chain[i - 1].hash:
                return False
        return bool(self.chain)

    def save_chain(self):
        if not self.filename:
            return
        with open(self.filename, 'w') as f:
            json.dump([b.to_dict() for b in self.chain], f, indent=4)

    def load_chain(self):
        try:
            with open(self.filename, 'r') as f:
                data = json.load(f)
            self.chain = [Block(**d) for d in data]
        except (OSError, ValueError, TypeError) as exc:
            raise LedgerError(f"cannot read ledger {self.filename}: {exc}") from exc
        if not self.is_valid():
            raise LedgerError(f"ledger {self.filename} failed hash verification")
        logger.info("loaded ledger %s with %d blocks", self.filename, len(self.chain))

    def reset_chain(self):
        if self.filename and os.path.exists(self.filename):
            os.remove(self.filename)
        self.chain = []
        self.pending_events = []
        self.create_genesis_block()
