import json
import logging
from collections import deque

logger = logging.getLogger(__name__)

SPLIT_TYPES = ("parent", "partner", "child")


class FamilyTreeFormatError(ValueError):
	pass


def _Unique(ids):
	seen = set()
	out = []
	for i in ids:
		if i not in seen:
			seen.add(i)
			out.append(i)
	return out


class SplitLink():

	def __init__(self, type, linked_person_id, ghost_context=None):
		self.Type = type
		self.LinkedPersonId = linked_person_id
		self.GhostContext = ghost_context

	@classmethod
	def FromDict(cls, obj):
		return cls(obj.get("type"), obj.get("linkedPersonId"), obj.get("ghostContext"))

	def __repr__(self):
		return f'SplitLink({self.Type!r}, {self.LinkedPersonId!r}, {self.GhostContext!r})'


class Person():

	def __init__(self, id, first, gender="", last="", birth_date=None, death_date=None):
		self.ID = id
		self.FirstName = first
		self.LastName = last
		self.MaidenName = ""

		self.BirthDate = birth_date
		self.DeathDate = death_date

		self.Gender = gender

		# Ordered id lists; order drives layout tie-breaks.
		self.Parents = []
		self.Children = []
		self.Partners = []

		self.SplitLinks = []

	@classmethod
	def FromDict(cls, obj):
		person = cls(
			obj["id"],
			obj["firstName"],
			gender=obj.get("gender") or "",
			last=obj.get("lastName") or "",
			birth_date=obj.get("birthDate") or None,
			death_date=obj.get("deathDate") or None,
		)
		person.MaidenName = obj.get("maidenName") or ""
		rel = obj.get("relationships") or {}
		person.Parents = list(rel.get("parents") or [])
		person.Children = list(rel.get("children") or [])
		person.Partners = list(rel.get("partners") or [])
		person.SplitLinks = [SplitLink.FromDict(s) for s in obj.get("splitLinks") or []]
		return person

	def GetId(self):
		return self.ID

	def GetNodeId(self):
		return str(self.ID)

	def GetFullName(self):
		if self.LastName:
			return f'{self.FirstName} {self.LastName}'
		return self.FirstName

	def GetNodeLabel(self):
		label = self.GetFullName()
		if self.BirthDate or self.DeathDate:
			birth = str(self.BirthDate)[:4] if self.BirthDate else '?'
			label += '\n' + birth
			if self.DeathDate:
				label += ' - ' + str(self.DeathDate)[:4]
		return label

	def HasPartner(self):
		'''
		Counts explicit partners and partner splits, since a split partner
		still sits beside this person through its ghost.
		'''
		if self.Partners:
			return True
		return any(s.Type == "partner" or s.GhostContext == "partner" for s in self.SplitLinks)

	def __str__(self):
		return self.GetNodeLabel()

	def __repr__(self):
		return f'Person({self.ID!r}, {self.FirstName!r})'


class FamilyTree():

	def __init__(self, people):
		self.people = list(people)
		self._people_by_id = {p.GetId(): p for p in self.people}

	@classmethod
	def FromRecords(cls, records):
		people = []
		for record in records:
			if record.get("id") is None or not record.get("firstName"):
				logger.warning("Skipping invalid person record: %r", record)
				continue
			people.append(Person.FromDict(record))
		return cls(people)

	@classmethod
	def FromFile(cls, people_file):
		with open(people_file, "r") as file:
			obj = json.load(file)
		people = obj.get("people") if isinstance(obj, dict) else None
		if not isinstance(people, list):
			raise FamilyTreeFormatError(f'{people_file}: missing people array')
		return cls.FromRecords(people)

	def __len__(self):
		return len(self.people)

	def __contains__(self, id):
		return id in self._people_by_id

	def GetPerson(self, id):
		return self._people_by_id.get(id)

	def GetPersonFromID(self, id):
		return self._people_by_id[id]

	def GetPeople(self, ids):
		return [self._people_by_id[i] for i in ids if i in self._people_by_id]

	def RepairRelationships(self):
		"""
		Mirror every parent, child and partner link onto the other person and
		drop duplicate ids. Ids with no matching person are left alone.
		Returns True if anything was changed.
		"""
		changed = False
		for person in self.people:
			pid = person.GetId()

			for attr in ("Parents", "Children", "Partners"):
				ids = getattr(person, attr)
				unique = _Unique(ids)
				if len(unique) != len(ids):
					setattr(person, attr, unique)
					changed = True

			for parent in self.GetPeople(person.Parents):
				if pid not in parent.Children:
					parent.Children.append(pid)
					changed = True
					logger.info("Repaired link: %s is parent of %s", parent.FirstName, person.FirstName)

			for child in self.GetPeople(person.Children):
				if pid not in child.Parents:
					child.Parents.append(pid)
					changed = True
					logger.info("Repaired link: %s has parent %s", child.FirstName, person.FirstName)

			for partner in self.GetPeople(person.Partners):
				if pid not in partner.Partners:
					partner.Partners.append(pid)
					changed = True
					logger.info("Repaired link: %s is partner of %s", partner.FirstName, person.FirstName)

		if changed:
			logger.info("Relationship data repaired")
		return changed

	def GetImpliedPartners(self, id):
		# Co-parents of any shared child. Derived on every call, never stored.
		person = self.GetPerson(id)
		if person is None:
			return []
		implied = []
		for child in self.GetPeople(person.Children):
			for parent_id in child.Parents:
				if parent_id != id and parent_id not in implied and parent_id in self:
					implied.append(parent_id)
		return implied

	def GetPartners(self, id):
		person = self.GetPerson(id)
		if person is None:
			return []
		partners = [p for p in person.Partners if p != id and p in self]
		return _Unique(partners + self.GetImpliedPartners(id))

	def GetSiblings(self, id):
		person = self.GetPerson(id)
		if person is None:
			return []
		siblings = []
		for parent in self.GetPeople(person.Parents):
			for child_id in parent.Children:
				if child_id != id and child_id not in siblings and child_id in self:
					siblings.append(child_id)
		return siblings

	def GetRelatedIds(self, id):
		"""
		Everyone on the ancestry path of a person: all ancestors, all
		descendants, partners and co-parents.
		"""
		if id not in self:
			return set()
		related = {id}

		for attr in ("Parents", "Children"):
			q = deque([id])
			while q:
				person = self._people_by_id[q.popleft()]
				for next_id in getattr(person, attr):
					if next_id not in related and next_id in self:
						related.add(next_id)
						q.append(next_id)

		related.update(self.GetPartners(id))
		return related

	def AddRelationship(self, person_id, related_id, type):
		person = self.GetPerson(person_id)
		related = self.GetPerson(related_id)
		if person is None or related is None:
			return False

		if type == "parent":
			# person is the child, related is the parent
			self._Link(person.Parents, related_id)
			self._Link(related.Children, person_id)
		elif type == "child":
			self._Link(person.Children, related_id)
			self._Link(related.Parents, person_id)
		elif type == "partner":
			self._Link(person.Partners, related_id)
			self._Link(related.Partners, person_id)
		elif type == "sibling":
			for parent in self.GetPeople(person.Parents):
				self._Link(related.Parents, parent.GetId())
				self._Link(parent.Children, related_id)
		else:
			raise ValueError(f'Unknown relationship type: {type}')
		return True

	def _Link(self, ids, id):
		if id not in ids:
			ids.append(id)

	def IsLinkSplit(self, person_id, type, linked_person_id):
		person = self.GetPerson(person_id)
		if person is None:
			return False
		return any(s.Type == type and s.LinkedPersonId == linked_person_id for s in person.SplitLinks)

	def AddSplitLink(self, person_id, type, linked_person_id, ghost_context=None):
		"""
		Detach one relationship of a person so it is drawn through a ghost
		next to linked_person_id. Returns False if the person is unknown or
		the link is already split.
		"""
		if type not in SPLIT_TYPES:
			raise ValueError(f'Unknown split type: {type}')
		person = self.GetPerson(person_id)
		if person is None or self.IsLinkSplit(person_id, type, linked_person_id):
			return False
		person.SplitLinks.append(SplitLink(type, linked_person_id, ghost_context))
		return True

	def RemoveSplitLink(self, person_id, type, linked_person_id):
		person = self.GetPerson(person_id)
		if person is None:
			return False
		kept = [s for s in person.SplitLinks if not (s.Type == type and s.LinkedPersonId == linked_person_id)]
		if len(kept) == len(person.SplitLinks):
			return False
		person.SplitLinks = kept
		return True

	def GetSplitLinks(self, id):
		person = self.GetPerson(id)
		if person is None:
			return []
		return list(person.SplitLinks)
